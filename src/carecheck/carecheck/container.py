from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.mysql_attendance_repository import MySQLCheckEventRepository
from .attendance.repository import CheckEventRepository
from .attendance.service import AttendanceStatusService, EventValidator
from .beneficiaries.mysql_beneficiary_repository import MySQLBeneficiaryRepository
from .beneficiaries.repository import BeneficiaryRepository
from .billing.aggregator import BillingAggregator
from .billing.factory import PremiumStrategyFactory
from .billing.service import MonthlySummaryService
from .billing.splitter import PremiumSplitter
from .challenges.mysql_challenge_repository import MySQLChallengeTokenRepository
from .challenges.repository import ChallengeTokenRepository
from .challenges.service import ChallengeAuthority
from .common.datetime_utils import NowFn, utc_now
from .core.constants import DEFAULT_FALLBACK_RATE
from .database.connection import DBConfig, DatabaseConnection
from .holidays.calendar import HolidayCalendar
from .intervals.reconstructor import IntervalReconstructor
from .notifications.dispatcher import LoggingNotificationDispatcher, NotificationDispatcher
from .notifications.mysql_recipient_repository import MySQLRecipientRepository
from .notifications.repository import RecipientRepository
from .notifications.service import CheckNotificationService
from .rates.mysql_rate_repository import MySQLRateHistoryRepository
from .rates.repository import RateHistoryRepository


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    beneficiaries_repo: BeneficiaryRepository
    tokens_repo: ChallengeTokenRepository
    events_repo: CheckEventRepository
    rates_repo: RateHistoryRepository
    recipients_repo: RecipientRepository

    challenge_authority: ChallengeAuthority
    event_validator: EventValidator
    attendance_status_service: AttendanceStatusService
    monthly_summary_service: MonthlySummaryService


def wire_services(
    *,
    conn: Optional[DatabaseConnection],
    beneficiaries_repo: BeneficiaryRepository,
    tokens_repo: ChallengeTokenRepository,
    events_repo: CheckEventRepository,
    rates_repo: RateHistoryRepository,
    recipients_repo: RecipientRepository,
    dispatcher: Optional[NotificationDispatcher] = None,
    calendar: Optional[HolidayCalendar] = None,
    now_fn: NowFn = utc_now,
    fallback_rate: float = DEFAULT_FALLBACK_RATE,
) -> Container:
    """Builds the services on top of any set of repositories (MySQL or in-memory)."""
    reconstructor = IntervalReconstructor()
    aggregator = BillingAggregator(PremiumSplitter(PremiumStrategyFactory(calendar=calendar or HolidayCalendar())))
    notifier = CheckNotificationService(recipients_repo, dispatcher or LoggingNotificationDispatcher())

    return Container(
        conn=conn,
        beneficiaries_repo=beneficiaries_repo,
        tokens_repo=tokens_repo,
        events_repo=events_repo,
        rates_repo=rates_repo,
        recipients_repo=recipients_repo,
        challenge_authority=ChallengeAuthority(beneficiaries_repo, tokens_repo, now_fn=now_fn),
        event_validator=EventValidator(
            beneficiaries_repo,
            tokens_repo,
            events_repo,
            notifier=notifier,
            now_fn=now_fn,
        ),
        attendance_status_service=AttendanceStatusService(
            beneficiaries_repo,
            events_repo,
            reconstructor=reconstructor,
            now_fn=now_fn,
        ),
        monthly_summary_service=MonthlySummaryService(
            beneficiaries_repo,
            events_repo,
            rates_repo,
            reconstructor=reconstructor,
            aggregator=aggregator,
            default_fallback_rate=fallback_rate,
            now_fn=now_fn,
        ),
    )


def build_container(*, db_config: dict, fallback_rate: float = DEFAULT_FALLBACK_RATE) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return wire_services(
        conn=conn,
        beneficiaries_repo=MySQLBeneficiaryRepository(conn),
        tokens_repo=MySQLChallengeTokenRepository(conn),
        events_repo=MySQLCheckEventRepository(conn),
        rates_repo=MySQLRateHistoryRepository(conn),
        recipients_repo=MySQLRecipientRepository(conn),
        fallback_rate=fallback_rate,
    )
