"""
Simulated Assistant Events

Canned "the assistant noticed something" messages used to demo proactive
notifications in the chat.

DESIGN DECISION: The last choice lives on the generator instance, not in
a module global. One generator is shared by the process (see
create_app_components). Avoiding an immediate repeat is a UX nicety, not
a correctness property: two concurrent requests may still pick the same
message.
"""

import random
from typing import Optional


def simulated_scenarios(name: str) -> list[str]:
    """Scenario messages addressed to the given user name."""
    return [
        f"\U0001F4B0 Good news, {name}! A deposit of $4,500 from Sifra Inc. just hit your account. Labeled as: Developer Salary. Added to Income.",
        f"✈️ Urgent: {name}, I noticed your Passport expires in Aug 2026. You should renew it now if you plan to travel.",
        f"\U0001F3E5 Follow-up: {name}, based on your last Lab Results from Dr. House, you need to schedule a check-up next week. Vitamin D is low.",
        "\U0001F4C8 Insight: Your spending on Dining Out is down 12% compared to last month. Great job sticking to the budget!",
        "\U0001F514 Reminder: Your Adobe Creative Cloud subscription renewal ($54.99) is coming up on March 2nd.",
        "\U0001F6E1️ Security: I flagged a duplicate charge of $12.50 from Uber. No action needed, just keeping it in your records.",
        '\U0001F4B0 Savings: You have reached 80% of your savings goal for the "Europe Trip" fund.',
        '\U0001F4C4 Tax Watch: That last Amazon purchase was categorized as "Office Supplies". Added to your potential tax deductions.',
        "\U0001F4C9 Trend: You have spent $0 on Rideshare apps this week. That is a personal record!",
        "\U0001F4B3 Card Alert: Your credit utilization on the Chase Sapphire card is currently at 28%. Recommended to keep it under 30%.",
        "\U0001F504 Subscription: Detected a price increase in your internet bill from Comcast (+$5.00/mo).",
        "\U0001F4CA Report: Your Weekly Financial Digest is ready in the Files tab.",
        "⚡ Utility: Electricity usage projected to be lower this month based on current trends.",
        "\U0001F393 Loan: Student loan payment of $250.00 processed successfully.",
        "\U0001F4BC Income: Freelance payment of $800.00 from Upwork has been cleared.",
    ]


class SimulatedEventGenerator:
    """Picks scenario messages, never repeating the previous pick."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._last_index: Optional[int] = None

    @property
    def last_index(self) -> Optional[int]:
        return self._last_index

    def next_message(self, name: Optional[str] = None) -> str:
        scenarios = simulated_scenarios((name or "").strip() or "User")
        candidates = [
            i for i in range(len(scenarios))
            if len(scenarios) == 1 or i != self._last_index
        ]
        index = self._rng.choice(candidates)
        self._last_index = index
        return scenarios[index]
