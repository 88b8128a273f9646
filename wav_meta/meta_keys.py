from __future__ import annotations

# Element names inside the iXML root that the application reads or writes.
# Anything not listed here is carried through write-back untouched.

IXML_ROOT = "BWFXML"

PROJECT = "PROJECT"
SCENE = "SCENE"
TAKE = "TAKE"
SLATE = "SLATE"
CATEGORY = "CATEGORY"
SUBCATEGORY = "SUBCATEGORY"
NOTE = "NOTE"
CIRCLED = "CIRCLED"
WILD_TRACK = "WILD_TRACK"

# iXML element -> StructuredMetadata attribute.
IXML_FIELDS = {
    PROJECT: "project",
    SCENE: "scene",
    TAKE: "take",
    SLATE: "slate",
    CATEGORY: "category",
    SUBCATEGORY: "subcategory",
    NOTE: "note",
    CIRCLED: "circled",
    WILD_TRACK: "wild_track",
}

# Record fields a caller may edit before write-back.
EDITABLE_FIELDS = (
    "show",
    "scene",
    "take",
    "slate",
    "category",
    "subcategory",
    "note",
    "wildtrack",
    "circled",
)

WAV_EXTENSION = ".wav"
