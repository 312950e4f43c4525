"""Final merge pass over a finished enrichment document."""

from enrichment.models import DEFAULT_FORMAT, EnrichmentOutput, dedupe


def finalize_canonical(out: EnrichmentOutput) -> None:
    """Default ``format`` to Album when no provider contributed one."""
    if not out.canonical.format:
        out.canonical.format = [DEFAULT_FORMAT]


def aggregate_download_list(out: EnrichmentOutput) -> list[str]:
    """Collect gallery URLs, article first, then album, then artist.

    Duplicates and empty URLs are dropped; first-seen order is kept.
    """
    urls = [item.url for gallery in out.wiki.in_download_order() for item in gallery]
    out.downloads.image_urls = dedupe(urls)
    return out.downloads.image_urls
