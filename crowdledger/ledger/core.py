"""Campaign ledger - serial, all-or-nothing execution of ledger transactions."""

import threading
import uuid
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, TypeVar, Union

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from crowdledger.config import Config
from crowdledger.db.models import ChainState, LedgerCounters
from crowdledger.db.session import create_db_engine, create_session_factory, init_schema, session_scope
from crowdledger.chain.clock import BlockClock
from crowdledger.errors import InvalidArgumentsError, LedgerError, UnknownFunctionError
from crowdledger.ledger import campaigns, contributions, queries
from crowdledger.ledger.context import TxContext
from crowdledger.ledger.response import Response
from crowdledger.ledger.validation import require_principal, require_uint
from crowdledger.ledger.views import (
    CampaignRecord,
    CampaignStatusView,
    CampaignsSummary,
    ContributionRecord,
    LedgerEventRecord,
)
from crowdledger.log import get_logger
from crowdledger.messaging.publisher import build_event_message

logger = get_logger(__name__)

T = TypeVar("T")

# Call table: function name -> (method name, ordered argument names, read-only)
CALLS: Dict[str, Tuple[str, Tuple[str, ...], bool]] = {
    "create-campaign": ("create_campaign", ("title", "description", "goal", "deadline"), False),
    "contribute": ("contribute", ("campaign_id", "amount"), False),
    "close-campaign": ("close_campaign", ("campaign_id",), False),
    "withdraw-funds": ("withdraw_funds", ("campaign_id",), False),
    "finalize-failure": ("finalize_failure", ("campaign_id",), False),
    "get-refund": ("refund", ("campaign_id",), False),
    "refund": ("refund", ("campaign_id",), False),
    "get-campaign": ("get_campaign", ("campaign_id",), True),
    "get-campaign-status": ("get_campaign_status", ("campaign_id",), True),
    "get-campaign-count": ("get_campaign_count", (), True),
    "get-active-campaigns": ("get_active_campaigns", (), True),
    "get-total-stx": ("get_total_stx", (), True),
    "get-total-contributors": ("get_total_contributors", (), True),
    "get-campaigns-summary": ("get_campaigns_summary", (), True),
    "get-contribution": ("get_contribution", ("campaign_id", "contributor"), True),
    "get-campaign-events": ("get_campaign_events", ("campaign_id",), True),
    "get-expired-campaigns": ("get_expired_campaigns", (), True),
    "get-escrow-balance": ("get_escrow_balance", (), True),
}


class Ledger:
    """Crowdfunding campaign ledger.

    Every state-changing operation runs as one transaction: it executes under
    a ledger-wide lock inside a single database session and either commits all
    of its effects or none of them. Rejected transactions raise a
    ``LedgerError`` subclass from the Python API and come back as
    ``err(code)`` from :meth:`call`.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        engine: Optional[Engine] = None,
        publisher: Optional[Any] = None,
    ):
        """Initialize ledger.

        Args:
            config: Configuration object (defaults to ``Config()``)
            engine: SQLAlchemy engine (defaults to one built from ``config.db_url``)
            publisher: Optional event publisher with ``publish_event(message)``
        """
        self.config = config or Config()
        self.engine = engine or create_db_engine(self.config.db_url)
        self._session_factory = create_session_factory(self.engine)
        self._lock = threading.RLock()
        self._publish_lock = threading.Lock()
        self.publisher = publisher
        self.clock = BlockClock(self._session_factory)

    @classmethod
    def in_memory(cls, config: Optional[Config] = None, **kwargs: Any) -> "Ledger":
        """Create an initialized ledger backed by a private in-memory database."""
        config = config or Config()
        engine = create_db_engine("sqlite://")
        ledger = cls(config=config, engine=engine, **kwargs)
        ledger.initialize()
        return ledger

    def initialize(self, block_height: int = 0) -> None:
        """Create the schema and the singleton state rows if missing."""
        init_schema(self.engine)
        with session_scope(self._session_factory) as session:
            if session.get(LedgerCounters, 1) is None:
                session.add(
                    LedgerCounters(
                        id=1,
                        campaign_count=0,
                        active_campaigns=0,
                        total_stx=0,
                        total_contributors=0,
                        escrow_balance=0,
                    )
                )
                logger.info("Initialized ledger counters")
            if session.get(ChainState, 1) is None:
                session.add(ChainState(id=1, block_height=block_height))
                logger.info(f"Initialized chain state at height {block_height}")

    # ------------------------------------------------------------------
    # Transaction execution
    # ------------------------------------------------------------------

    def _transact(self, function: str, sender: str, operation: Callable[[TxContext], T]) -> T:
        """Run ``operation`` as one atomic transaction.

        Args:
            function: Function name (for logging)
            sender: Caller identity
            operation: Callable receiving the transaction context

        Returns:
            Whatever ``operation`` returns
        """
        sender = require_principal(sender)
        tx_id = uuid.uuid4().hex

        with self._lock:
            try:
                with session_scope(self._session_factory) as session:
                    ctx = TxContext(
                        session=session,
                        config=self.config,
                        sender=sender,
                        block_height=queries.get_block_height(session),
                        tx_id=tx_id,
                    )
                    result = operation(ctx)
            except LedgerError as e:
                logger.info(f"Rejected {function} from {sender}: err({int(e.code)}) {e}")
                raise

            logger.info(f"Committed {function} from {sender}: tx={tx_id} at height {ctx.block_height}")

        # Published outside the ledger lock
        with self._publish_lock:
            self._publish(ctx.events)
        return result

    def _publish(self, events: List[Dict[str, Any]]) -> None:
        """Publish committed events; a failure here never undoes the transaction."""
        if self.publisher is None:
            return
        for event in events:
            message = build_event_message(self.config.escrow_principal, event)
            try:
                self.publisher.publish_event(message)
            except Exception as e:
                logger.error(f"Failed to publish {event['event_type']} for tx={event['tx_id']}: {e}", exc_info=True)

    def _read(self, reader: Callable[[Session], T]) -> T:
        with self._lock:
            with session_scope(self._session_factory) as session:
                return reader(session)

    # ------------------------------------------------------------------
    # Campaign store
    # ------------------------------------------------------------------

    def create_campaign(self, sender: str, goal: int, deadline: int, title: str, description: str = "") -> int:
        """Create a campaign owned by ``sender`` and return its id."""
        return self._transact(
            "create-campaign",
            sender,
            lambda ctx: campaigns.create_campaign(ctx, goal, deadline, title, description),
        )

    def close_campaign(self, sender: str, campaign_id: int) -> bool:
        return self._transact(
            "close-campaign", sender, lambda ctx: campaigns.close_campaign(ctx, campaign_id)
        )

    def withdraw_funds(self, sender: str, campaign_id: int) -> int:
        return self._transact(
            "withdraw-funds", sender, lambda ctx: campaigns.withdraw_funds(ctx, campaign_id)
        )

    def finalize_failure(self, sender: str, campaign_id: int) -> bool:
        return self._transact(
            "finalize-failure", sender, lambda ctx: campaigns.finalize_failure(ctx, campaign_id)
        )

    # ------------------------------------------------------------------
    # Contribution ledger
    # ------------------------------------------------------------------

    def contribute(self, sender: str, campaign_id: int, amount: int) -> bool:
        return self._transact(
            "contribute", sender, lambda ctx: contributions.contribute(ctx, campaign_id, amount)
        )

    def refund(self, sender: str, campaign_id: int) -> int:
        return self._transact(
            "get-refund", sender, lambda ctx: contributions.refund(ctx, campaign_id)
        )

    # ------------------------------------------------------------------
    # Query surface
    # ------------------------------------------------------------------

    def get_campaign(self, campaign_id: int) -> Optional[CampaignRecord]:
        return self._read(lambda s: queries.get_campaign(s, campaign_id))

    def get_campaign_status(self, campaign_id: int) -> Optional[CampaignStatusView]:
        return self._read(lambda s: queries.get_campaign_status(s, campaign_id))

    def get_campaign_count(self) -> int:
        return self._read(queries.get_campaign_count)

    def get_active_campaigns(self) -> int:
        return self._read(queries.get_active_campaigns)

    def get_total_stx(self) -> int:
        return self._read(queries.get_total_stx)

    def get_total_contributors(self) -> int:
        return self._read(queries.get_total_contributors)

    def get_escrow_balance(self) -> int:
        return self._read(queries.get_escrow_balance)

    def get_campaigns_summary(self) -> CampaignsSummary:
        return self._read(queries.get_campaigns_summary)

    def get_contribution(self, campaign_id: int, contributor: str) -> int:
        return self._read(lambda s: queries.get_contribution(s, campaign_id, contributor))

    def get_contribution_record(self, campaign_id: int, contributor: str) -> Optional[ContributionRecord]:
        return self._read(lambda s: queries.get_contribution_record(s, campaign_id, contributor))

    def list_campaigns(self) -> List[CampaignRecord]:
        return self._read(queries.list_campaigns)

    def get_expired_campaigns(self) -> List[CampaignRecord]:
        return self._read(queries.get_expired_campaigns)

    def get_campaign_events(self, campaign_id: int) -> List[LedgerEventRecord]:
        return self._read(lambda s: queries.get_campaign_events(s, campaign_id))

    # ------------------------------------------------------------------
    # Call interface
    # ------------------------------------------------------------------

    def call(
        self,
        function: str,
        args: Union[Sequence[Any], Dict[str, Any], None] = None,
        sender: Optional[str] = None,
    ) -> Response:
        """Execute a call by function name and return ``ok(value)`` or ``err(code)``.

        Args:
            function: Function name, e.g. "create-campaign"
            args: Positional arguments in the documented order, or a dict by name
            sender: Caller identity (required for state-changing calls)

        Returns:
            Response
        """
        try:
            method_name, arg_names, read_only = self._resolve(function)
            kwargs = self._bind_args(function, arg_names, args)
            method = getattr(self, method_name)
            if read_only:
                value = method(**kwargs)
            else:
                value = method(sender, **kwargs)
        except LedgerError as e:
            return Response.failure(e.code, str(e))
        return Response.success(value)

    @staticmethod
    def _resolve(function: str) -> Tuple[str, Tuple[str, ...], bool]:
        try:
            return CALLS[function]
        except KeyError:
            raise UnknownFunctionError(f"Unknown function: {function}") from None

    @staticmethod
    def _bind_args(
        function: str,
        arg_names: Tuple[str, ...],
        args: Union[Sequence[Any], Dict[str, Any], None],
    ) -> Dict[str, Any]:
        """Map call arguments onto parameter names, checking arity and uint types."""
        if args is None:
            args = ()
        if isinstance(args, dict):
            missing = [name for name in arg_names if name not in args]
            extra = [name for name in args if name not in arg_names]
            if missing or extra:
                raise InvalidArgumentsError(
                    f"{function}: missing={missing} unexpected={extra}"
                )
            kwargs = {name: args[name] for name in arg_names}
        else:
            if len(args) != len(arg_names):
                raise InvalidArgumentsError(
                    f"{function} expects {len(arg_names)} arguments, got {len(args)}"
                )
            kwargs = dict(zip(arg_names, args))

        for name in ("campaign_id", "goal", "deadline", "amount"):
            if name in kwargs:
                require_uint(kwargs[name], name)
        if "contributor" in kwargs:
            kwargs["contributor"] = require_principal(kwargs["contributor"], "contributor")
        return kwargs
