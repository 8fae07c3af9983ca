"""
Turns the HTML source of the connection status page into a StartupProcedure.
    Only tested against SB8200's web interface but should work for other Arris modems as well.

Here's a trimmed snippet of the HTML that we're trying to parse:

    <div class="content">
      <table class="simpleTable">
        <tr><th colspan=3><strong>Startup Procedure</strong></th></tr>
        <tr><td><strong>Procedure</strong></td><td><strong>Status</strong></td><td><strong>Comment</strong></td></tr>
        <tr><td>Acquire Downstream Channel</td><td>675000000 Hz</td><td>Locked</td></tr>
        <tr><td>Connectivity State</td><td>OK</td><td>Operational</td></tr>
        ...

The rows are picked by position, not by the label in the first column.
"""

import structlog
from bs4 import BeautifulSoup, Tag
from err.exceptions import ExtractionError
from modem import metrics
from modem.models import StartupProcedure, StatusEntry

log = structlog.get_logger(__name__)

STARTUP_TABLE_SELECTOR = ".content table:nth-of-type(1)"

# Rows 1 and 2 are the table title and the column headings
FIRST_DATA_ROW = 3

STATUS_CELL_SELECTOR = "td:nth-of-type(2)"
COMMENT_CELL_SELECTOR = "td:nth-of-type(3)"


def is_login_page(soup: BeautifulSoup) -> bool:
    """Check if the page is the login page"""
    title = soup.find("title")
    return title is not None and title.text.strip() == "Login"


def parse_startup_procedure(html: str) -> StartupProcedure:
    """Map the connection status page to a StartupProcedure.

    Raises ExtractionError if the table, one of the six rows or a row's status cell is missing.
    A missing comment cell is fine; the comment is just left empty.
    """
    soup = BeautifulSoup(html, "html.parser")
    try:
        procedure = _extract_startup_procedure(soup)
    except ExtractionError:
        metrics.c_meta_parse_result.labels("startup", False).inc()
        raise
    metrics.c_meta_parse_result.labels("startup", True).inc()
    return procedure


def _extract_startup_procedure(soup: BeautifulSoup) -> StartupProcedure:
    table = soup.select_one(STARTUP_TABLE_SELECTOR)
    if table is None:
        # Under load the modem sometimes serves the login page with a 200
        if is_login_page(soup):
            raise ExtractionError("modem returned the login page instead of status")
        raise ExtractionError("startup procedure table not found")

    entries = {}
    for offset, name in enumerate(StartupProcedure.field_names()):
        row_number = FIRST_DATA_ROW + offset
        row = table.select_one(f"tr:nth-of-type({row_number})")
        if row is None:
            raise ExtractionError(f"row {row_number} ({name}) not found")
        entries[name] = _extract_status_entry(row, name)

    log.debug("Startup procedure", **{k: v.status for k, v in entries.items()})
    return StartupProcedure(**entries)


def _extract_status_entry(row: Tag, name: str) -> StatusEntry:
    if (status := row.select_one(STATUS_CELL_SELECTOR)) is None:
        raise ExtractionError(f"status cell for {name} not found")
    comment = row.select_one(COMMENT_CELL_SELECTOR)
    return StatusEntry(
        status=status.text.strip(),
        comment=comment.text.strip() if comment is not None else "",
    )
