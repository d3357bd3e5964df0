"""Container image reference helpers."""

import re
from dataclasses import dataclass

from ecs_toolkit.core.deployments.aws_ecs.errors import ImageParseError

DEFAULT_TAG = "latest"

_PATH_COMPONENT = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*$")
_TAG = re.compile(r"^[\w][\w.-]{0,127}$", re.ASCII)
_DIGEST = re.compile(r"^[A-Za-z][A-Za-z0-9]*(?:[-_+.][A-Za-z][A-Za-z0-9]*)*:[0-9a-fA-F]{32,}$")


@dataclass(frozen=True)
class ImageReference:
    """A parsed ``[registry/]repository[:tag][@digest]`` image reference."""

    registry: str | None
    repository: str
    tag: str
    digest: str | None = None
    explicit_tag: bool = True

    @property
    def name(self) -> str:
        """Return the registry and repository without tag or digest."""
        if self.registry:
            return f"{self.registry}/{self.repository}"
        return self.repository

    def with_tag(self, tag: str) -> "ImageReference":
        """Return a copy of the reference pointing at another tag, without digest."""
        return ImageReference(
            registry=self.registry,
            repository=self.repository,
            tag=tag,
            explicit_tag=True,
        )

    def __str__(self) -> str:
        reference = self.name
        if self.explicit_tag:
            reference = f"{reference}:{self.tag}"
        if self.digest:
            reference = f"{reference}@{self.digest}"
        return reference


def parse_image_reference(reference: str) -> ImageReference:
    """Split an image reference into registry, repository and tag.

    A reference without a tag resolves to ``latest``.

    Args:
        reference: Image reference as found in a container definition.

    Returns:
        The parsed reference.

    Raises:
        ImageParseError: If the reference is malformed.
    """
    value = reference.strip()
    if not value:
        raise ImageParseError("image reference is empty")

    remainder, _, digest = value.partition("@")
    if digest and not _DIGEST.match(digest):
        raise ImageParseError(f"invalid digest in image reference '{reference}'")

    # The tag separator is the last colon after the last slash, a colon
    # before that belongs to a registry port.
    last_slash = remainder.rfind("/")
    tag_separator = remainder.rfind(":")
    tag: str | None = None
    if tag_separator > last_slash:
        tag = remainder[tag_separator + 1 :]
        remainder = remainder[:tag_separator]
        if not _TAG.match(tag):
            raise ImageParseError(f"invalid tag '{tag}' in image reference '{reference}'")

    registry: str | None = None
    components = remainder.split("/")
    if len(components) > 1 and _looks_like_registry(components[0]):
        registry = components[0]
        components = components[1:]

    if not components or not all(_PATH_COMPONENT.match(part) for part in components):
        raise ImageParseError(f"invalid repository in image reference '{reference}'")

    return ImageReference(
        registry=registry,
        repository="/".join(components),
        tag=tag or DEFAULT_TAG,
        digest=digest or None,
        explicit_tag=tag is not None,
    )


def rewrite_tag(reference: str, new_tag: str) -> tuple[str, str]:
    """Point an image reference at a new tag.

    Registry and repository are preserved exactly; only the tag changes. No
    comparison with the current tag is made here.

    Args:
        reference: Current image reference.
        new_tag: Tag to switch to.

    Returns:
        The new reference and the tag it replaced.

    Raises:
        ImageParseError: If the reference or the new tag is malformed, or the
            reference is pinned by digest.
    """
    if not _TAG.match(new_tag):
        raise ImageParseError(f"invalid image tag '{new_tag}'")

    parsed = parse_image_reference(reference)
    # The runtime pulls by digest when one is present and ignores the tag.
    if parsed.digest:
        raise ImageParseError(
            f"image reference '{reference}' is pinned by digest, cannot switch it to tag '{new_tag}'"
        )
    return str(parsed.with_tag(new_tag)), parsed.tag


def _looks_like_registry(component: str) -> bool:
    return "." in component or ":" in component or component == "localhost"
