"""
strategies.py - Hypothesis strategies for record streams

Streams use few clients and few transaction ids so that duplicates, disputes
of existing transactions and client mismatches come up often.
"""

from decimal import Decimal

from hypothesis import strategies as st

from payments import Deposit, Withdrawal, Dispute, Resolve, Chargeback, Malformed


CLIENT_IDS = st.integers(min_value=1, max_value=3)
TX_IDS = st.integers(min_value=1, max_value=15)

amounts = st.decimals(
    min_value=Decimal("0.0001"),
    max_value=Decimal("1000"),
    places=4,
    allow_nan=False,
    allow_infinity=False,
)

deposits = st.builds(Deposit, CLIENT_IDS, TX_IDS, amounts)
withdrawals = st.builds(Withdrawal, CLIENT_IDS, TX_IDS, amounts)
disputes = st.builds(Dispute, CLIENT_IDS, TX_IDS)
resolves = st.builds(Resolve, CLIENT_IDS, TX_IDS)
chargebacks = st.builds(Chargeback, CLIENT_IDS, TX_IDS)
malformed = st.builds(
    Malformed,
    st.tuples(st.sampled_from(["bacon", "deposit", ""]), st.text(max_size=5)),
    st.just("generated"),
)

records = st.one_of(
    deposits, deposits, withdrawals, disputes, disputes, resolves, chargebacks, malformed,
)

record_streams = st.lists(records, min_size=1, max_size=60)
