from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from ..domain.repositories import HistoryRepository, ReservationRepository
from ..domain.services import BookingPolicy
from ..utils.time import utc_naive_to_local
from .history import list_history
from .stats import monthly_stats

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

HISTORY_COLUMNS = (
    ("ID", 10),
    ("Tipo", 15),
    ("iPads", 30),
    ("Fecha Uso", 15),
    ("Bloque", 30),
    ("Docente", 30),
    ("Curso", 20),
    ("Novedades", 40),
    ("Registro", 25),
)


def export_filename(month: int, year: int) -> str:
    return f"reservas_{month:02d}_{year}.xlsx"


def _write_header(worksheet, columns) -> None:
    worksheet.append([title for title, _ in columns])
    for cell in worksheet[1]:
        cell.font = Font(bold=True)
    for idx, (_, width) in enumerate(columns, start=1):
        worksheet.column_dimensions[get_column_letter(idx)].width = width


async def build_month_workbook(
    history_repo: HistoryRepository,
    res_repo: ReservationRepository,
    *,
    policy: BookingPolicy,
    month: int,
    year: int,
) -> bytes:
    """Render the month's history and statistics to an xlsx document. Read-only."""
    events = await list_history(history_repo, month=month, year=year)
    stats = await monthly_stats(res_repo, policy=policy, month=month, year=year)

    workbook = Workbook()
    history_sheet = workbook.active
    history_sheet.title = "Historial"
    _write_header(history_sheet, HISTORY_COLUMNS)
    for event in events:
        history_sheet.append(
            [
                event.id,
                str(event.event_type),
                event.device_ids,
                event.event_date.isoformat(),
                event.time_blocks,
                event.requester,
                event.course,
                event.notes,
                utc_naive_to_local(event.created_at).strftime("%Y-%m-%d %H:%M:%S"),
            ]
        )

    stats_sheet = workbook.create_sheet("Estadísticas")
    _write_header(stats_sheet, (("Métrica", 30), ("Valor", 30)))
    top_date = stats.top_date if isinstance(stats.top_date, str) else stats.top_date.isoformat()
    stats_sheet.append(["Total Reservas", stats.total])
    stats_sheet.append(["iPad más utilizado", stats.top_device])
    stats_sheet.append(["Día de mayor demanda", top_date])
    stats_sheet.append(["Bloque más solicitado", stats.top_block])

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
