from .cli import build_arg_parser, main
from .slugs import slugify

__all__ = ["build_arg_parser", "main", "slugify"]
