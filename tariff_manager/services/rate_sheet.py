"""
Fiche tarifaire client / Client rate sheet.
Projection pure d'un client et de ses affectations actives en document paginé.
Pure projection of a client and its active assignments into a paginated document.

La pagination est calculée en unités de ligne avant le rendu : total_pages est
connu d'avance pour afficher "Page X of Y" dès la page 1.
Pagination is computed in line units before rendering: total_pages is known up
front so "Page X of Y" is right from page 1.
"""

import textwrap
from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tariff_manager.config import settings
from tariff_manager.exceptions import NotFoundError, ValidationError
from tariff_manager.models.client import Client
from tariff_manager.models.client_route import ClientRoute
from tariff_manager.models.route import Route
from tariff_manager.services.rate_calculator import format_currency

# Lignes réservées / Reserved line units
FIRST_PAGE_HEADER_LINES = 16  # branding, titre, client, validité / branding, title, client, validity
CONTINUED_HEADER_LINES = 2
MIN_LINES_PER_PAGE = FIRST_PAGE_HEADER_LINES + 6

TABLE_COLUMNS = ("Route", "Origin", "Destination", "Distance", "Rate")


@dataclass
class Branding:
    company_name: str
    tagline: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    vat_number: str = ""
    registration_number: str = ""


@dataclass
class SheetLayout:
    lines_per_page: int = 60
    wrap_width: int = 110


@dataclass
class RateSheetOptions:
    effective_date: date | None = None
    valid_until: date | None = None
    notes: str | None = None
    include_terms: bool = True
    terms: str | None = None
    show_vat_marker: bool = True
    prepared_by: str | None = None
    reference: str | None = None


@dataclass
class RateLine:
    client_route_id: int
    route_code: str
    origin: str
    destination: str
    distance: str
    rate: str
    vat_inclusive: bool = False

    @property
    def cells(self) -> tuple[str, ...]:
        rate = f"{self.rate} VAT Incl" if self.vat_inclusive else self.rate
        return (self.route_code, self.origin, self.destination, self.distance, rate)


@dataclass
class PageItem:
    """Élément positionné sur une page / Item laid out on a page.

    kind: section, table_header, row, text, continued
    """
    kind: str
    text: str = ""
    cells: tuple[str, ...] = ()


@dataclass
class RateSheet:
    branding: Branding
    title: str
    reference: str
    client: dict
    effective_date: str
    valid_until: str
    lines: list[RateLine]
    notes: str | None
    terms: str | None
    prepared_by: str | None
    generated_at: str
    lines_per_page: int
    pages: list[list[PageItem]] = field(default_factory=list)

    @property
    def total_pages(self) -> int:
        return len(self.pages)


def add_months(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(day.day, monthrange(year, month)[1]))


def branding_from_settings() -> Branding:
    return Branding(
        company_name=settings.COMPANY_NAME,
        tagline=settings.COMPANY_TAGLINE,
        address=settings.COMPANY_ADDRESS,
        phone=settings.COMPANY_PHONE,
        email=settings.COMPANY_EMAIL,
        website=settings.COMPANY_WEBSITE,
        vat_number=settings.COMPANY_VAT_NUMBER,
        registration_number=settings.COMPANY_REGISTRATION_NUMBER,
    )


def layout_from_settings() -> SheetLayout:
    return SheetLayout(lines_per_page=settings.RATE_SHEET_LINES_PER_PAGE, wrap_width=settings.RATE_SHEET_WRAP_WIDTH)


def _wrap(text: str, width: int) -> list[str]:
    lines = []
    for paragraph in text.splitlines():
        lines.extend(textwrap.wrap(paragraph, width=width) or [""])
    return lines


class _Paginator:
    """Remplit les pages en unités de ligne / Fills pages in line units."""

    def __init__(self, lines_per_page: int):
        self.lines_per_page = lines_per_page
        self.pages: list[list[PageItem]] = [[]]
        self.remaining = lines_per_page - FIRST_PAGE_HEADER_LINES
        self.section = ""

    def _new_page(self) -> None:
        self.pages.append([PageItem("continued", f"{self.section} (continued)" if self.section else "")])
        self.remaining = self.lines_per_page - CONTINUED_HEADER_LINES

    def add(self, item: PageItem, keep_with_next: int = 0) -> bool:
        """Ajouter un élément ; True si une nouvelle page a été ouverte / True when a page was opened."""
        broke = False
        if self.remaining < 1 + keep_with_next:
            self._new_page()
            broke = True
        self.pages[-1].append(item)
        self.remaining -= 1
        return broke

    def section_heading(self, title: str) -> None:
        self.section = title
        # titre + 1 ligne au moins / heading plus at least one line
        self.add(PageItem("section", title), keep_with_next=1)


def paginate(lines: list[RateLine], notes: str | None, terms: str | None, layout: SheetLayout) -> list[list[PageItem]]:
    if layout.lines_per_page < MIN_LINES_PER_PAGE:
        raise ValidationError(
            f"lines_per_page must be at least {MIN_LINES_PER_PAGE}",
            details={"lines_per_page": layout.lines_per_page},
        )
    pager = _Paginator(layout.lines_per_page)

    pager.section_heading("ROUTE RATES")
    pager.add(PageItem("table_header", cells=TABLE_COLUMNS))
    for line in lines:
        if pager.add(PageItem("row", cells=line.cells), keep_with_next=0):
            # en-tête de tableau répété / repeated table header
            pager.pages[-1].insert(1, PageItem("table_header", cells=TABLE_COLUMNS))
            pager.remaining -= 1
    if not lines:
        pager.add(PageItem("text", "No active routes."))

    if notes:
        pager.add(PageItem("text", ""))
        pager.section_heading("NOTES")
        for text in _wrap(notes, layout.wrap_width):
            pager.add(PageItem("text", text))

    if terms:
        pager.add(PageItem("text", ""))
        pager.section_heading("TERMS & CONDITIONS")
        for text in _wrap(terms, layout.wrap_width):
            pager.add(PageItem("text", text))

    return pager.pages


def build_rate_sheet(
    client: Client,
    assignments: list[tuple[ClientRoute, Route]],
    options: RateSheetOptions,
    branding: Branding,
    layout: SheetLayout,
    today: date | None = None,
) -> RateSheet:
    """Construire le modèle de fiche / Build the rate sheet model."""
    today = today or date.today()
    effective = options.effective_date or today
    valid_until = options.valid_until or add_months(effective, settings.RATE_SHEET_VALIDITY_MONTHS)
    if valid_until < effective:
        raise ValidationError("valid_until must not be before effective_date")

    lines = []
    for assignment, route in assignments:
        if not assignment.is_active:
            continue
        lines.append(RateLine(
            client_route_id=assignment.id,
            route_code=route.route_code,
            origin=route.origin,
            destination=route.destination,
            distance=f"{route.distance_km:,.0f} km" if route.distance_km is not None else "-",
            rate=format_currency(assignment.current_rate, assignment.currency.value),
            vat_inclusive=options.show_vat_marker and assignment.includes_vat,
        ))

    terms = (options.terms or settings.DEFAULT_TERMS) if options.include_terms else None
    return RateSheet(
        branding=branding,
        title="CLIENT RATE SHEET",
        reference=options.reference or f"RS-{client.client_code}-{effective.strftime('%Y%m%d')}",
        client={
            "client_code": client.client_code,
            "company_name": client.company_name,
            "contact_person": client.contact_person,
            "email": client.email,
            "phone": client.phone,
            "address": ", ".join(p for p in (client.address, client.city, client.postal_code) if p),
            "vat_number": client.vat_number,
        },
        effective_date=effective.isoformat(),
        valid_until=valid_until.isoformat(),
        lines=lines,
        notes=options.notes,
        terms=terms,
        prepared_by=options.prepared_by,
        generated_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        lines_per_page=layout.lines_per_page,
        pages=paginate(lines, options.notes, terms, layout),
    )


class RateSheetService:

    @staticmethod
    async def for_client(db: AsyncSession, client_id: int, options: RateSheetOptions, today: date | None = None) -> RateSheet:
        client = await db.get(Client, client_id)
        if not client:
            raise NotFoundError("Client", client_id)
        result = await db.execute(
            select(ClientRoute, Route)
            .join(Route, Route.id == ClientRoute.route_id)
            .where(ClientRoute.client_id == client_id, ClientRoute.is_active.is_(True))
            .order_by(Route.route_code)
        )
        assignments = [(assignment, route) for assignment, route in result.all()]
        return build_rate_sheet(client, assignments, options, branding_from_settings(), layout_from_settings(), today)
