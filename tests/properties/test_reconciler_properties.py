"""Property tests for drift detection.

- A set compared with itself has no drift
- Applying a diff to the observed set converges it
- Only user-sourced settings are ever reset
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from rds_params.models import ParameterDiff, ParameterSet
from rds_params.reconciler import diff
from rds_params.types import SettingSource

from .strategies import setting_lists

sources = st.sampled_from(list(SettingSource))


@st.composite
def observed_sets(draw):
    items = draw(setting_lists())
    return ParameterSet(
        name="g",
        settings=[s.model_copy(update={"source": draw(sources)}) for s in items],
    )


def _apply(observed: ParameterSet, result: ParameterDiff) -> ParameterSet:
    """What the remote looks like after the diff is submitted."""
    changed = {s.key for s in result.to_set}
    removed = {name.lower() for name in result.to_reset}
    kept = [s for s in observed.settings if s.key not in changed | removed]
    return ParameterSet(name=observed.name, settings=kept + list(result.to_set))


@given(items=setting_lists())
@settings(max_examples=200)
def test_no_drift_against_itself(items):
    """Property: An observed set equal to the desired one yields an empty diff."""
    desired = ParameterSet(name="g", settings=items)
    assert diff(desired, desired.model_copy(deep=True)).is_empty


@given(items=setting_lists(), observed=observed_sets())
@settings(max_examples=300)
def test_applying_diff_converges(items, observed):
    """Property: After the diff is applied, a second diff is empty."""
    desired = ParameterSet(name="g", settings=items)
    after = _apply(observed, diff(desired, observed))
    assert diff(desired, after).is_empty


@given(items=setting_lists(), observed=observed_sets())
@settings(max_examples=300)
def test_only_user_settings_reset(items, observed):
    """Property: System and engine-default values are never reset."""
    desired = ParameterSet(name="g", settings=items)
    by_key = observed.by_key()
    for name in diff(desired, observed).to_reset:
        assert by_key[name.lower()].source == SettingSource.USER
