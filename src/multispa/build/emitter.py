"""Page entry discovery for builds."""

import logging

from multispa.build.types import BuildContext
from multispa.core.pages import PageResolver

logger = logging.getLogger(__name__)


def emit_page_entries(ctx: BuildContext, pages: PageResolver) -> int:
    """Register every page under the pages root as a build entry.

    Only the client environment gets page entries. A missing pages
    directory simply contributes nothing.

    Returns:
        Number of page entries registered
    """
    if not ctx.is_client:
        return 0

    count = 0
    for page_file in pages.iter_pages():
        entry_id = page_file.relative_to(pages.root).as_posix()
        ctx.emit_entry(entry_id)
        logger.debug(f"Page entry: {entry_id}")
        count += 1
    return count
