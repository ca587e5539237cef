"""Action descriptors and their factories.

Options are passed through to the service as given; only the keys the
service expects are renamed here.
"""

from dataclasses import dataclass, field
from enum import Enum

from docassembly.exceptions import ValidationError
from docassembly.inputs.models import FileInput

DEFAULT_WATERMARK_SIZE: dict[str, object] = {"value": 100, "unit": "%"}
ROTATION_ANGLES = (90, 180, 270)


class ActionKind(Enum):
    """Action variants with their wire type and embedded file field."""

    OCR = ("ocr", None)
    WATERMARK_TEXT = ("watermark", None)
    WATERMARK_IMAGE = ("watermark", "image")
    ROTATE = ("rotate", None)
    FLATTEN = ("flatten", None)
    CREATE_REDACTIONS = ("createRedactions", None)
    APPLY_REDACTIONS = ("applyRedactions", None)
    APPLY_INSTANT_JSON = ("applyInstantJson", "file")
    APPLY_XFDF = ("applyXfdf", "file")

    def __init__(self, wire_type: str, file_field: str | None) -> None:
        self.wire_type = wire_type
        self.file_field = file_field


@dataclass(frozen=True)
class Action:
    kind: ActionKind
    options: dict[str, object] = field(default_factory=dict)
    file: FileInput | None = None

    @property
    def needs_file(self) -> bool:
        return self.kind.file_field is not None


def _compact(**values: object) -> dict[str, object]:
    return {key: value for key, value in values.items() if value is not None}


def ocr(language: str | list[str]) -> Action:
    """Run OCR in the given language(s)."""
    return Action(ActionKind.OCR, {"language": language})


def watermark_text(
    text: str,
    *,
    width: dict[str, object] | None = None,
    height: dict[str, object] | None = None,
    opacity: float | None = None,
    rotation: float | None = None,
    font_size: int | None = None,
    font_color: str | None = None,
    font_family: str | None = None,
    font_style: list[str] | None = None,
    top: dict[str, object] | None = None,
    left: dict[str, object] | None = None,
    right: dict[str, object] | None = None,
    bottom: dict[str, object] | None = None,
) -> Action:
    """Stamp ``text`` on every page; sizes default to the full page."""
    if not text:
        raise ValidationError("Watermark text is required")
    options = {
        "text": text,
        "width": width or dict(DEFAULT_WATERMARK_SIZE),
        "height": height or dict(DEFAULT_WATERMARK_SIZE),
    }
    options.update(
        _compact(
            opacity=opacity,
            rotation=rotation,
            fontSize=font_size,
            fontColor=font_color,
            fontFamily=font_family,
            fontStyle=font_style,
            top=top,
            left=left,
            right=right,
            bottom=bottom,
        )
    )
    return Action(ActionKind.WATERMARK_TEXT, options)


def watermark_image(
    image: FileInput,
    *,
    width: dict[str, object] | None = None,
    height: dict[str, object] | None = None,
    opacity: float | None = None,
    rotation: float | None = None,
    top: dict[str, object] | None = None,
    left: dict[str, object] | None = None,
    right: dict[str, object] | None = None,
    bottom: dict[str, object] | None = None,
) -> Action:
    """Stamp ``image`` on every page; the image is uploaded as its own payload."""
    options = {
        "width": width or dict(DEFAULT_WATERMARK_SIZE),
        "height": height or dict(DEFAULT_WATERMARK_SIZE),
    }
    options.update(
        _compact(
            opacity=opacity,
            rotation=rotation,
            top=top,
            left=left,
            right=right,
            bottom=bottom,
        )
    )
    return Action(ActionKind.WATERMARK_IMAGE, options, file=image)


def rotate(rotate_by: int) -> Action:
    """Rotate by a multiple of 90 degrees."""
    if rotate_by not in ROTATION_ANGLES:
        raise ValidationError(
            f"Rotation must be one of {list(ROTATION_ANGLES)}, got {rotate_by}",
            {"rotate_by": rotate_by},
        )
    return Action(ActionKind.ROTATE, {"rotateBy": rotate_by})


def flatten(annotation_ids: list[str | int] | None = None) -> Action:
    """Burn annotations into page content, optionally only ``annotation_ids``."""
    return Action(ActionKind.FLATTEN, _compact(annotationIds=annotation_ids))


def _create_redactions(
    strategy: str,
    strategy_options: dict[str, object],
    content: dict[str, object] | None,
) -> Action:
    options: dict[str, object] = {
        "strategy": strategy,
        "strategyOptions": strategy_options,
    }
    if content:
        options["content"] = content
    return Action(ActionKind.CREATE_REDACTIONS, options)


def create_redactions_text(
    text: str,
    *,
    case_sensitive: bool | None = None,
    include_annotations: bool | None = None,
    start: int | None = None,
    limit: int | None = None,
    content: dict[str, object] | None = None,
) -> Action:
    """Mark every occurrence of ``text`` for redaction."""
    return _create_redactions(
        "text",
        _compact(
            text=text,
            caseSensitive=case_sensitive,
            includeAnnotations=include_annotations,
            start=start,
            limit=limit,
        ),
        content,
    )


def create_redactions_regex(
    regex: str,
    *,
    case_sensitive: bool | None = None,
    include_annotations: bool | None = None,
    start: int | None = None,
    limit: int | None = None,
    content: dict[str, object] | None = None,
) -> Action:
    """Mark every match of ``regex`` for redaction."""
    return _create_redactions(
        "regex",
        _compact(
            regex=regex,
            caseSensitive=case_sensitive,
            includeAnnotations=include_annotations,
            start=start,
            limit=limit,
        ),
        content,
    )


def create_redactions_preset(
    preset: str,
    *,
    include_annotations: bool | None = None,
    start: int | None = None,
    limit: int | None = None,
    content: dict[str, object] | None = None,
) -> Action:
    """Mark matches of a built-in pattern such as ``email-address``."""
    return _create_redactions(
        "preset",
        _compact(
            preset=preset,
            includeAnnotations=include_annotations,
            start=start,
            limit=limit,
        ),
        content,
    )


def apply_redactions() -> Action:
    """Apply all pending redactions."""
    return Action(ActionKind.APPLY_REDACTIONS)


def apply_instant_json(file: FileInput) -> Action:
    """Import annotations from an Instant JSON file."""
    return Action(ActionKind.APPLY_INSTANT_JSON, file=file)


def apply_xfdf(
    file: FileInput,
    *,
    ignore_page_rotation: bool | None = None,
    rich_text_enabled: bool | None = None,
) -> Action:
    """Import annotations from an XFDF file."""
    return Action(
        ActionKind.APPLY_XFDF,
        _compact(
            ignorePageRotation=ignore_page_rotation,
            richTextEnabled=rich_text_enabled,
        ),
        file=file,
    )
