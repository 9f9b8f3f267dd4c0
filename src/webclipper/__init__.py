"""webclipper - render web clippings into Markdown notes with templates."""

from .templates import TemplateEngine, register_filter, render

__version__ = "0.1.0"

__all__ = ["TemplateEngine", "render", "register_filter", "__version__"]
