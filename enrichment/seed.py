"""Turn caller input into a typed Seed and flag set.

Input arrives as plain query parameters plus an optional compact command
string such as ``upc:0888751119215 title:"Kind of Blue"``. Command tokens are
read left to right and override query parameters; the last occurrence of a
key wins and anything unrecognised is ignored.
"""

import logging
import re
from collections.abc import Mapping

from config.settings import LANG_TAG_RE, Settings
from core.barcode import barcode_variants, canonicalize_barcode
from enrichment.models import EnrichmentOutput, Flags, IdentifierKind, Seed

logger = logging.getLogger(__name__)

# Seed field -> query parameter names, first non-empty wins
SEED_PARAMS: dict[str, tuple[str, ...]] = {
    "barcode": ("upc", "ean", "barcode"),
    "mbid": ("mbid",),
    "mb_release_mbid": ("mb_release_mbid",),
    "mb_release_group": ("mb_release_group",),
    "mb_artist_id": ("mb_artist_id",),
    "discogs_release_id": ("discogs", "discogs_release_id"),
    "discogs_master_id": ("discogs_master_id",),
    "qid": ("qid",),
    "artist": ("artist",),
    "title": ("title",),
}

# Command key -> seed field
COMMAND_KEYS = {
    "upc": "barcode",
    "ean": "barcode",
    "barcode": "barcode",
    "mbid": "mbid",
    "discogs": "discogs_release_id",
    "qid": "qid",
    "artist": "artist",
    "title": "title",
}

COMMAND_TOKEN = re.compile(r"""(?<!\S)([A-Za-z_]+):(?:"([^"]*)"|'([^']*)'|(\S*))""")
QID_RE = re.compile(r"^Q[1-9]\d*$")

IMAGES_MODES = ("artist", "album", "both", "none")
TRUTHY = ("1", "true", "yes")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_command(cmd: str | None) -> dict[str, str]:
    """Parse ``key:value`` tokens into seed fields.

    Values may be single- or double-quoted to carry spaces.
    """
    fields: dict[str, str] = {}
    if not cmd:
        return fields
    for match in COMMAND_TOKEN.finditer(cmd):
        key = match.group(1).lower()
        field = COMMAND_KEYS.get(key)
        if field is None:
            continue
        value = next((g for g in match.group(2, 3, 4) if g is not None), "")
        value = value.strip()
        if value:
            fields[field] = value
    return fields


def parse_seed(params: Mapping[str, str | None], cmd: str | None = None) -> Seed:
    """Build a Seed from query parameters and an optional command string."""
    values: dict[str, str | None] = {}
    for field, names in SEED_PARAMS.items():
        values[field] = next((v for v in (_clean(params.get(n)) for n in names) if v), None)
    values.update(parse_command(cmd))
    return Seed(**values)


def to_bool(value: str | None) -> bool:
    if not value:
        return False
    return value.strip().lower() in TRUTHY


def clamp_int(value: str | None, low: int, high: int, default: int) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return min(high, max(low, number))


def parse_flags(params: Mapping[str, str | None], settings: Settings) -> Flags:
    """Read the ``all``, ``images``, ``lang`` and ``max_images`` flags.

    Out-of-range or unknown values fall back to defaults instead of failing
    the request.
    """
    images = (_clean(params.get("images")) or "both").lower()
    if images not in IMAGES_MODES:
        images = "both"
    lang = (_clean(params.get("lang")) or settings.default_lang).lower()
    if not LANG_TAG_RE.match(lang):
        logger.info(f"Ignoring invalid lang flag {lang!r}")
        lang = settings.default_lang
    return Flags(
        all=to_bool(params.get("all")),
        images=images,
        lang=lang,
        max_images=clamp_int(params.get("max_images"), 1, 50, settings.default_max_images),
    )


def normalize_seed(seed: Seed, out: EnrichmentOutput) -> Seed:
    """Canonicalize the barcode and adopt explicit IDs into the identifier map.

    Records the barcode variants to try, in order, in diagnostics.

    Returns:
        The seed with its barcode in canonical form
    """
    barcode = canonicalize_barcode(seed.barcode)
    out.diagnostics.tried_barcodes.extend(barcode_variants(barcode))

    out.set_identifier(IdentifierKind.DISCOGS_RELEASE, seed.discogs_release_id)
    out.set_identifier(IdentifierKind.DISCOGS_MASTER, seed.discogs_master_id)
    out.set_identifier(IdentifierKind.MB_RELEASE_GROUP, seed.mb_release_group)
    out.set_identifier(IdentifierKind.MB_ARTIST, seed.mb_artist_id)
    if seed.qid:
        qid = seed.qid.upper()
        if QID_RE.match(qid):
            out.set_identifier(IdentifierKind.WIKIDATA_ALBUM, qid)
        else:
            out.diagnostics.notes.append(f"ignored malformed qid {seed.qid!r}")

    return seed.model_copy(update={"barcode": barcode})
