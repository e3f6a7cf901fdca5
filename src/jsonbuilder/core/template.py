"""Builder variant for template hosts.

`TemplateBuilder` keeps an output buffer in sync with its container and can
render partial templates through the host's rendering context. The host
supplies an object with `render(partial_name, **options)`; templates are
plain callables `template(json, **locals)`.

Example:
    >>> class Views:
    ...     templates = {"posts/_post": lambda json, post: json.extract(post, "title")}
    ...     def render(self, name, **options):
    ...         return render_template(self.templates[name], self, **options)
    >>> TemplateBuilder.encode(Views(), lambda json: json.partial("posts/_post", post=post))
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from .builder import Block, Builder


class OutputBuffer:
    """Append-only text buffer that can be replaced wholesale."""

    __slots__ = ("_parts",)

    def __init__(self, text: str = "") -> None:
        self._parts: list[str] = [text] if text else []

    def write(self, text: str) -> None:
        self._parts.append(text)

    def replace(self, text: str) -> None:
        self._parts = [text]

    def getvalue(self) -> str:
        if len(self._parts) > 1:
            self._parts = ["".join(self._parts)]
        return self._parts[0] if self._parts else ""

    def __str__(self) -> str:
        return self.getvalue()

    def __bool__(self) -> bool:
        return any(self._parts)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OutputBuffer):
            return other.getvalue() == self.getvalue()
        if isinstance(other, str):
            return other == self.getvalue()
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"OutputBuffer({self.getvalue()!r})"


@runtime_checkable
class RenderContext(Protocol):
    """Host rendering context (duck typing)."""
    def render(self, partial_name: str, **options: Any) -> object: ...


class TemplateBuilder(Builder):
    """Builder bound to a rendering context.

    After every mutation the encoded container is written to `buffer`, so a
    host can hand the buffer out as the template's output at any point.
    Child builders share the parent's context.

    Args:
        context: Host rendering context used by `partial`
        **options: Builder options (cache, encoder, write_budget, ...)
    """

    __slots__ = ("_context", "_buffer")

    def __init__(self, context: RenderContext, **options: Any) -> None:
        self._context = context
        self._buffer = OutputBuffer()
        super().__init__(**options)

    @classmethod
    def encode(cls, context: RenderContext, block: Block, **options: Any) -> OutputBuffer:  # type: ignore[override]
        builder = cls(context, **options)
        block(builder)
        builder.target()
        return builder.buffer

    @property
    def context(self) -> RenderContext:
        return self._context

    @property
    def buffer(self) -> OutputBuffer:
        return self._buffer

    def partial(self, partial_name: str, **options: Any) -> None:
        """Render `partial_name` with this builder as `json`, adopting its output.

        The host writes the partial's JSON into `partial_output_buffer`; the
        decoded text replaces this builder's container. When the partial
        writes nothing, whatever it built directly on this builder is kept.
        """
        output = OutputBuffer()
        self._context.render(partial_name, **{**options, "json": self, "partial_output_buffer": output})
        if output:
            self._replace(self._encoder.decode(output.getvalue()))

    def target(self) -> str:
        text = super().target()
        self._buffer.replace(text)
        return text

    def _options(self) -> dict[str, Any]:
        return {**super()._options(), "context": self._context}

    def _changed(self) -> None:
        self.target()


def render_template(
    template: Callable[..., object],
    context: RenderContext,
    *,
    json: TemplateBuilder | None = None,
    partial_output_buffer: OutputBuffer | None = None,
    **locals: Any,
) -> OutputBuffer:
    """Run a JSON template the way a host template handler would.

    Top-level renders get a fresh TemplateBuilder; partial renders reuse the
    caller's `json` builder. Partial output is appended to
    `partial_output_buffer` when one is given.
    """
    if json is None:
        output = TemplateBuilder.encode(context, lambda builder: template(builder, **locals))
    else:
        template(json, **locals)
        json.target()
        output = json.buffer
    if partial_output_buffer is not None:
        partial_output_buffer.write(output.getvalue())
    return output
