"""Move page outputs from the pages root to the top of the output tree."""

from multispa.build.types import BuildContext, Bundle


def flatten_pages(ctx: BuildContext, bundle: Bundle, pages_root: str) -> None:
    """Strip the pages root prefix from page output file names, in place.

    ``src/pages/contact/index.html`` becomes ``contact/index.html``. Only
    assets under the pages root are renamed, and only for the client
    environment.
    """
    if not ctx.is_client:
        return

    prefix = pages_root + "/"
    for output in bundle.values():
        if output.type == "asset" and output.file_name.startswith(prefix):
            output.file_name = output.file_name[len(prefix) :]
