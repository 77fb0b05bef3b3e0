"""Minimal HCL intermediate representation and ``terraform fmt`` style writer.

The generator never builds HCL text by hand.  Factories describe blocks with
plain Python values and this module turns them into a deterministic,
diff-friendly document:

1. :func:`build_block` orders attributes (``source`` and ``version`` first,
   the rest alphabetically) and type-checks every value.
2. :func:`encode_value` turns an attribute value into an HCL expression.
3. :func:`combine_blocks` flattens the results of the domain factories.
4. :func:`render_blocks` writes the final document, one blank line after
   every block.

Attribute values form a closed union::

    AttributeValue = str | int | bool | Traversal | Mapping[str, AttributeValue]

A :class:`Traversal` is a symbolic reference (``module.aws_config.external_id``)
and is written verbatim, never quoted.  Module ``providers`` overrides map
provider aliases to bare references, which the value union cannot express
inside an object literal; :func:`provider_details_attribute` is the single
place where such pre-rendered content (a :class:`RawAttribute`) is produced.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Union

_INDENT = "  "
_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*$")

# Attributes hoisted to the top of every block, in this order.
_PRIORITY_KEYS = ("source", "version")


@dataclass(frozen=True)
class Traversal:
    """A symbolic reference to another object, e.g. ``module.aws_config.iam_role_arn``."""

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.segments:
            raise ValueError("a traversal needs at least one segment")

    def __str__(self) -> str:
        return ".".join(self.segments)


AttributeValue = Union[str, int, bool, Traversal, Mapping[str, "AttributeValue"]]


@dataclass(frozen=True)
class RawAttribute:
    """An object-literal attribute whose values are bare references.

    Only used for the module ``providers`` meta-argument.  Entries are kept
    sorted by key and rendered after a blank line, below the regular
    attributes of the block.
    """

    name: str
    entries: tuple[tuple[str, str], ...]


@dataclass
class Block:
    """A single HCL block: ``kind "label" ... { ... }``.

    ``attributes`` is already in serialization order; build blocks through
    :func:`build_block` rather than filling it directly.
    """

    kind: str
    labels: tuple[str, ...] = ()
    attributes: dict[str, AttributeValue] = field(default_factory=dict)
    blocks: list[Block] = field(default_factory=list)
    raw_attributes: list[RawAttribute] = field(default_factory=list)

    def get_attribute(self, name: str) -> Optional[AttributeValue]:
        """Return the value of attribute *name*, or ``None`` when unset."""
        return self.attributes.get(name)

    def attribute_text(self, name: str) -> str:
        """Render a single attribute as ``name = <expression>``.

        Raises:
            KeyError: If the block has no attribute called *name*.
        """
        for raw in self.raw_attributes:
            if raw.name == name:
                return "\n".join(_render_raw_attribute(raw, 0))
        value = self.attributes[name]
        return f"{name} = {encode_value(value)}"

    def append_block(self, block: Block) -> None:
        self.blocks.append(block)

    def render(self) -> str:
        """Render this block (without the trailing blank line)."""
        return "\n".join(_render_block(self, 0))


@dataclass
class RequiredProvider:
    """One entry of ``terraform { required_providers { ... } }``."""

    name: str
    source: str = ""
    version: str = ""


@dataclass
class Provider:
    """A ``provider "<name>"`` block."""

    name: str
    attributes: dict[str, AttributeValue] = field(default_factory=dict)


@dataclass
class Module:
    """A ``module "<name>"`` block.

    ``provider_details`` maps a provider key of the module (``aws``) to a
    provider reference in the calling configuration (``aws.main``).  Values
    are written as-is, so they must be valid references.
    """

    name: str
    source: str = ""
    version: str = ""
    attributes: dict[str, AttributeValue] = field(default_factory=dict)
    provider_details: Optional[dict[str, str]] = None


# ---------------------------------------------------------------------------
# Attribute value encoding
# ---------------------------------------------------------------------------


def create_simple_traversal(segments: list[str] | tuple[str, ...]) -> Traversal:
    """Build a :class:`Traversal` from path segments.

    Example::

        >>> str(create_simple_traversal(["module", "aws_config", "external_id"]))
        'module.aws_config.external_id'
    """
    return Traversal(tuple(segments))


def quote_string(value: str) -> str:
    """Return *value* as a quoted HCL string literal.

    Template sequences (``${`` and ``%{``) are escaped so that literal input
    is never interpolated by Terraform.
    """
    escaped = (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("${", "$${")
        .replace("%{", "%%{")
    )
    return f'"{escaped}"'


def encode_value(value: Any, indent: int = 0) -> str:
    """Encode an attribute value as an HCL expression.

    Args:
        value: One of the :data:`AttributeValue` variants.
        indent: Nesting level of the line the expression starts on.  Only
            matters for object literals, whose entries and closing brace are
            indented relative to it.

    Returns:
        The expression text.  Object literals span multiple lines with their
        keys sorted ascending; every other variant is a single line.

    Raises:
        TypeError: If *value* is not a supported variant.  This is a bug in
            the calling factory, not a user input problem.
    """
    if isinstance(value, Traversal):
        return str(value)
    # bool is a subclass of int, check it first.
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        return quote_string(value)
    if isinstance(value, Mapping):
        return _encode_object(value, indent)
    raise TypeError(f"unsupported attribute value type: {type(value).__name__}")


def _encode_object(value: Mapping[str, Any], indent: int) -> str:
    if not value:
        return "{}"
    entries = [(_object_key(k), value[k]) for k in sorted(value)]
    lines = ["{"]
    lines.extend(_render_attributes(entries, indent + 1))
    lines.append(f"{_INDENT * indent}}}")
    return "\n".join(lines)


def _object_key(key: str) -> str:
    if _IDENTIFIER_RE.match(key):
        return key
    return quote_string(key)


def _check_value(name: str, value: Any) -> None:
    """Fail fast on values :func:`encode_value` cannot write."""
    if isinstance(value, (Traversal, bool, int, str)):
        return
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"object keys must be strings, got {key!r} in {name!r}")
            _check_value(f"{name}.{key}", item)
        return
    raise TypeError(
        f"unsupported attribute value type for {name!r}: {type(value).__name__}"
    )


# ---------------------------------------------------------------------------
# Block construction
# ---------------------------------------------------------------------------


def order_attribute_keys(keys: Iterable[str]) -> list[str]:
    """Return *keys* with ``source`` and ``version`` first, the rest sorted."""
    keys = list(keys)
    hoisted = [k for k in _PRIORITY_KEYS if k in keys]
    rest = sorted(k for k in keys if k not in _PRIORITY_KEYS)
    return hoisted + rest


def build_block(
    kind: str,
    labels: list[str] | tuple[str, ...] | None = None,
    attributes: Optional[Mapping[str, Any]] = None,
) -> Block:
    """Create a :class:`Block` with deterministically ordered attributes.

    Args:
        kind: Block type, e.g. ``module``, ``provider`` or ``terraform``.
        labels: Block labels, e.g. the module name.
        attributes: Attribute name to value.  Insertion order is ignored.

    Raises:
        TypeError: If any value is not an :data:`AttributeValue`.
    """
    attributes = attributes or {}
    ordered: dict[str, AttributeValue] = {}
    for key in order_attribute_keys(attributes.keys()):
        _check_value(key, attributes[key])
        ordered[key] = attributes[key]
    return Block(kind=kind, labels=tuple(labels or ()), attributes=ordered)


def provider_details_attribute(details: Mapping[str, str]) -> RawAttribute:
    """Build the ``providers = { key = reference }`` override of a module."""
    return RawAttribute(
        name="providers",
        entries=tuple((key, details[key]) for key in sorted(details)),
    )


def create_module(module: Module) -> Block:
    """Create a ``module`` block, hoisting ``source`` and ``version``."""
    attributes = dict(module.attributes)
    if module.source:
        attributes["source"] = module.source
    if module.version:
        attributes["version"] = module.version

    block = build_block("module", [module.name], attributes)
    if module.provider_details is not None:
        block.raw_attributes.append(provider_details_attribute(module.provider_details))
    return block


def create_provider(provider: Provider) -> Block:
    """Create a ``provider`` block."""
    return build_block("provider", [provider.name], provider.attributes)


def create_required_providers(providers: list[RequiredProvider]) -> Block:
    """Create ``terraform { required_providers { ... } }`` for *providers*."""
    details: dict[str, Any] = {}
    for provider in providers:
        entry: dict[str, str] = {}
        if provider.source:
            entry["source"] = provider.source
        if provider.version:
            entry["version"] = provider.version
        details[provider.name] = entry

    block = build_block("terraform")
    block.append_block(build_block("required_providers", None, details))
    return block


# ---------------------------------------------------------------------------
# Document assembly
# ---------------------------------------------------------------------------


def combine_blocks(*results: Block | list[Block] | None) -> list[Block]:
    """Flatten factory results into one ordered list of blocks.

    Each argument may be a single :class:`Block`, a list of blocks, or
    ``None`` (the factory had nothing to emit).  Order is preserved.

    Raises:
        TypeError: If an argument is of any other type.
    """
    blocks: list[Block] = []
    for result in results:
        if result is None:
            continue
        if isinstance(result, Block):
            blocks.append(result)
        elif isinstance(result, list):
            for item in result:
                if not isinstance(item, Block):
                    raise TypeError(f"expected Block, got {type(item).__name__}")
                blocks.append(item)
        else:
            raise TypeError(f"cannot combine {type(result).__name__} into HCL blocks")
    return blocks


def render_blocks(blocks: list[Block]) -> str:
    """Render *blocks* as one HCL document, each followed by a blank line."""
    return "".join(f"{block.render()}\n\n" for block in blocks)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _render_block(block: Block, indent: int) -> list[str]:
    pad = _INDENT * indent
    header = " ".join([block.kind, *(quote_string(label) for label in block.labels)])
    lines = [f"{pad}{header} {{"]
    lines.extend(_render_attributes(list(block.attributes.items()), indent + 1))
    for nested in block.blocks:
        lines.extend(_render_block(nested, indent + 1))
    for raw in block.raw_attributes:
        lines.append("")
        lines.extend(_render_raw_attribute(raw, indent + 1))
    lines.append(f"{pad}}}")
    return lines


def _render_attributes(entries: list[tuple[str, Any]], indent: int) -> list[str]:
    """Render ``name = value`` lines, aligning ``=`` within single-line runs.

    A multi-line value ends the current run and is written unpadded, the same
    way ``terraform fmt`` treats an expression that opens a bracket.
    """
    pad = _INDENT * indent
    encoded = [(name, encode_value(value, indent)) for name, value in entries]

    lines: list[str] = []
    run: list[tuple[str, str]] = []

    def flush() -> None:
        width = max((len(name) for name, _ in run), default=0)
        lines.extend(f"{pad}{name.ljust(width)} = {text}" for name, text in run)
        run.clear()

    for name, text in encoded:
        if "\n" in text:
            flush()
            lines.append(f"{pad}{name} = {text}")
        else:
            run.append((name, text))
    flush()
    return lines


def _render_raw_attribute(raw: RawAttribute, indent: int) -> list[str]:
    pad = _INDENT * indent
    inner = _INDENT * (indent + 1)
    width = max((len(key) for key, _ in raw.entries), default=0)
    lines = [f"{pad}{raw.name} = {{"]
    lines.extend(f"{inner}{key.ljust(width)} = {ref}" for key, ref in raw.entries)
    lines.append(f"{pad}}}")
    return lines
