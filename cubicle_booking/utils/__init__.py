from cubicle_booking.utils.date_utils import end_of_day, get_zone, now_utc, start_of_day, window_bounds
from cubicle_booking.utils.pdf_utils import NumberedCanvas, PDFGenerator

__all__ = [
    "NumberedCanvas",
    "PDFGenerator",
    "end_of_day",
    "get_zone",
    "now_utc",
    "start_of_day",
    "window_bounds",
]
