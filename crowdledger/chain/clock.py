"""Block height as seen by the ledger."""

from sqlalchemy.orm import sessionmaker

from crowdledger.db.models import ChainState
from crowdledger.db.session import session_scope
from crowdledger.log import get_logger

logger = get_logger(__name__)


class BlockClock:
    """Persisted chain tip the ledger executes transactions against.

    Heights only move forward: ``set_height`` ignores older tips and
    ``advance`` mines empty blocks.
    """

    def __init__(self, session_factory: sessionmaker):
        """Initialize clock.

        Args:
            session_factory: Session factory of the ledger database
        """
        self._session_factory = session_factory

    def current_height(self) -> int:
        with session_scope(self._session_factory) as session:
            state = session.get(ChainState, 1)
            return state.block_height if state else 0

    def advance(self, blocks: int = 1) -> int:
        """Mine ``blocks`` empty blocks.

        Returns:
            New block height
        """
        if blocks < 0:
            raise ValueError("blocks must be >= 0")
        with session_scope(self._session_factory) as session:
            state = self._load(session)
            state.block_height += blocks
            height = state.block_height
        logger.debug(f"Advanced chain by {blocks} blocks to {height}")
        return height

    def set_height(self, height: int) -> int:
        """Move the tip to ``height`` if it is ahead of the current tip.

        Returns:
            Block height after the update
        """
        if height < 0:
            raise ValueError("height must be >= 0")
        with session_scope(self._session_factory) as session:
            state = self._load(session)
            if height > state.block_height:
                logger.info(f"Chain tip moved from {state.block_height} to {height}")
                state.block_height = height
            elif height < state.block_height:
                logger.warning(f"Ignoring older tip {height} (current {state.block_height})")
            return state.block_height

    @staticmethod
    def _load(session) -> ChainState:
        state = session.get(ChainState, 1)
        if state is None:
            state = ChainState(id=1, block_height=0)
            session.add(state)
        return state
