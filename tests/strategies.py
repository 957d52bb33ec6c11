"""Hypothesis strategies for steerloop models.

Provides strategies for validation reports, retry policies and scripted
verdict sequences used by the loop property tests.
"""

from hypothesis import strategies as st

from steerloop.models import RetryPolicy, ValidationReport

# Error and warning text (non-empty, reasonable size)
message_text = st.text(
    min_size=1,
    max_size=200,
    alphabet=st.characters(whitelist_categories=("L", "N", "P", "Z", "S")),
)

metadata = st.dictionaries(
    keys=st.text(min_size=1, max_size=20),
    values=st.one_of(st.text(max_size=50), st.integers(), st.booleans()),
    max_size=5,
)

valid_reports = st.builds(
    ValidationReport.success,
    warnings=st.lists(message_text, max_size=3),
    metadata=metadata,
)

invalid_reports = st.builds(
    ValidationReport.failure,
    st.lists(message_text, min_size=1, max_size=5),
    warnings=st.lists(message_text, max_size=3),
    metadata=metadata,
)

any_report = st.one_of(valid_reports, invalid_reports)

policies = st.builds(RetryPolicy, max_attempts=st.integers(min_value=1, max_value=8))

# Verdict scripts: the loop stops at the first valid report or at max_attempts
verdict_scripts = st.lists(any_report, min_size=1, max_size=10)
