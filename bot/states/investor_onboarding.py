"""FSM states for the investor onboarding wizard."""

from aiogram.fsm.state import StatesGroup, State


class InvestorOnboarding(StatesGroup):
    """One state per wizard step — FSM data["field"] names the pending question."""
    personal = State()
    financial = State()
    banking = State()
    verification = State()
    agreement = State()


STEP_STATES = {
    1: InvestorOnboarding.personal,
    2: InvestorOnboarding.financial,
    3: InvestorOnboarding.banking,
    4: InvestorOnboarding.verification,
    5: InvestorOnboarding.agreement,
}
