"""header/footer content injected around rendered output."""

from typing import Optional

from mdrender.core.config import ConversionConfig, InjectionContent, RendererKind

CDNJS = "https://cdnjs.cloudflare.com/ajax/libs"
JSDELIVR = "https://cdn.jsdelivr.net/npm"

HTML_HEADER = (
    f'<link rel="stylesheet" href="{CDNJS}/KaTeX/0.11.1/katex.min.css" crossorigin="anonymous">'
    f'<link rel="stylesheet" href="{CDNJS}/highlight.js/9.18.1/styles/xcode.min.css">'
    f'<script src="{CDNJS}/KaTeX/0.11.1/katex.min.js" crossorigin="anonymous"></script>\n'
    f'<script src="{CDNJS}/KaTeX/0.11.1/contrib/auto-render.min.js" crossorigin="anonymous"></script>\n'
    f'<script src="{CDNJS}/highlight.js/9.18.1/highlight.min.js"></script>'
    f'<script src="{JSDELIVR}/mermaid@8.4.0/dist/mermaid.min.js"></script>'
)

HTML_FOOTER = (
    "<style>"
    "body {"
    "   font-family: -apple-system, 'Segoe UI', 'Helvetica Neue', sans-serif;"
    "}"
    " </style>"
    "<script>renderMathInElement(document.body); hljs.initHighlightingOnLoad(); "
    "mermaid.initialize({startOnLoad:true});</script>\n"
)

EMPTY_INJECTION = InjectionContent()


def compose_injection(  # pylint: disable=unused-argument
    kind: RendererKind, config: Optional[ConversionConfig] = None
) -> InjectionContent:
    """
    returns the header/footer content for a renderer kind.

    Only HTML output receives content: the header loads KaTeX, highlight.js
    and mermaid, the footer styles the body and starts them. Other kinds get
    empty content.

    Args:
        kind: renderer kind of the conversion
        config: conversion configuration (the current policy depends on kind only)

    Returns:
        injection content for the conversion
    """
    if kind is RendererKind.HTML:
        return InjectionContent(header=HTML_HEADER, footer=HTML_FOOTER)
    return EMPTY_INJECTION
