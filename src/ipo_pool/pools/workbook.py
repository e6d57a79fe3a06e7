"""
Workbook-level operations: IPOs and the shared demat account roster.

Every operation returns a new Workbook; the caller stores it.
"""

from decimal import Decimal
from typing import Optional

from ipo_pool.models import DematAccount, IPODetails, IPOLotTerms, IPORecord, Workbook
from ipo_pool.pools.roster import add_demat_account, remove_demat_account


class WorkbookError(Exception):
    """Raised when a workbook operation refers to an unknown IPO."""
    pass


def get_ipo(workbook: Workbook, ipo_id: str) -> IPORecord:
    """
    Look up an IPO by id.

    Raises:
        WorkbookError: If no IPO has this id
    """
    for ipo in workbook.ipos:
        if ipo.ipo_id == ipo_id:
            return ipo
    raise WorkbookError(f"Unknown IPO: {ipo_id}")


def find_ipo_by_name(workbook: Workbook, name: str) -> Optional[IPORecord]:
    """First IPO with the given name (case-insensitive), or None."""
    wanted = name.strip().lower()
    for ipo in workbook.ipos:
        if ipo.details.name.strip().lower() == wanted:
            return ipo
    return None


def add_ipo(
    workbook: Workbook,
    name: Optional[str] = None,
    lot_terms: Optional[IPOLotTerms] = None,
) -> tuple[Workbook, IPORecord]:
    """
    Add a new IPO. Without a name it is called ``IPO <n>``.

    Returns:
        Tuple of (updated Workbook, created IPORecord)
    """
    if not name:
        name = f"IPO {len(workbook.ipos) + 1}"
    ipo = IPORecord.create(name=name, lot_terms=lot_terms)
    return workbook.with_ipos([*workbook.ipos, ipo]), ipo


def replace_ipo(workbook: Workbook, ipo: IPORecord) -> Workbook:
    """Store an updated IPORecord in place of the one with the same id."""
    get_ipo(workbook, ipo.ipo_id)
    return workbook.with_ipos(
        [ipo if existing.ipo_id == ipo.ipo_id else existing for existing in workbook.ipos]
    )


def update_ipo_details(
    workbook: Workbook,
    ipo_id: str,
    name: Optional[str] = None,
    lot_price: Optional[Decimal] = None,
    shares_per_lot: Optional[int] = None,
) -> Workbook:
    """
    Edit an IPO's name and lot terms.

    The issue price is recomputed from the new lot terms.
    """
    ipo = get_ipo(workbook, ipo_id)
    terms = ipo.details.lot_terms
    if lot_price is not None:
        terms = terms.with_lot_price(lot_price)
    if shares_per_lot is not None:
        terms = terms.with_shares_per_lot(shares_per_lot)

    details = IPODetails(
        name=name if name is not None else ipo.details.name,
        lot_terms=terms,
    )
    return replace_ipo(workbook, ipo.with_details(details))


def delete_ipo(workbook: Workbook, ipo_id: str) -> Workbook:
    """Remove an IPO with its participants and results."""
    get_ipo(workbook, ipo_id)
    return workbook.with_ipos([i for i in workbook.ipos if i.ipo_id != ipo_id])


def add_account(
    workbook: Workbook,
    account_name: str,
    owner_name: str,
    commission_rate: Decimal,
) -> tuple[Workbook, DematAccount]:
    accounts, account = add_demat_account(
        list(workbook.demat_accounts), account_name, owner_name, commission_rate
    )
    return workbook.with_accounts(accounts), account


def remove_account(workbook: Workbook, account_id: str) -> Workbook:
    accounts = remove_demat_account(
        list(workbook.demat_accounts), account_id, ipos=workbook.ipos
    )
    return workbook.with_accounts(accounts)
