"""Example: use the service layer directly (no Flask).

Controllers stay thin; the business rules live in the services.
"""

import importlib

from config import get_settings_module

from src.carecheck.carecheck.billing.model import MonthWindow
from src.carecheck.carecheck.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    summary = container.monthly_summary_service.compute_monthly_summary(1, MonthWindow.parse("2025-06"))
    print(summary.to_dict())
    print(container.attendance_status_service.current_status(1).to_dict())


if __name__ == "__main__":
    main()
