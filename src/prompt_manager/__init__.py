"""prompt-manager - parameterized, composable prompt templates.

Templates carry [KEYWORD] placeholders, //include directives that splice in
other templates, embedded <%= %> expressions and $ENV references. Storage
backends keep each template's parameter history so the last value used
becomes the default for the next render.
"""

__version__ = "0.1.0"
