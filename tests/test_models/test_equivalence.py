"""Tests for Equivalence and SubmittedMigration.

Includes property-based tests via Hypothesis for equivalence symmetry.
"""

from __future__ import annotations

import pytest
from hypothesis import given, settings

from mirrorsync.exceptions import InvalidEquivalenceError
from mirrorsync.models.equivalence import Equivalence, SubmittedMigration
from mirrorsync.models.revision import Revision
from tests.strategies import distinct_revision_pairs

R1 = Revision(rev_id="1002", repository_name="repo1")
R2 = Revision(rev_id="2", repository_name="repo2")


class TestEquivalence:
    def test_symmetric_equality(self) -> None:
        assert Equivalence(R1, R2) == Equivalence(R2, R1)
        assert hash(Equivalence(R1, R2)) == hash(Equivalence(R2, R1))

    def test_set_dedup(self) -> None:
        assert len({Equivalence(R1, R2), Equivalence(R2, R1)}) == 1

    def test_self_equivalence_rejected(self) -> None:
        with pytest.raises(InvalidEquivalenceError):
            Equivalence(R1, Revision(rev_id="1002", repository_name="repo1"))

    def test_self_equivalence_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            Equivalence(R2, R2)

    def test_getitem_by_repository(self) -> None:
        eq = Equivalence(R1, R2)
        assert eq["repo1"] == R1
        assert eq["repo2"] == R2

    def test_getitem_unknown_repository(self) -> None:
        with pytest.raises(KeyError):
            Equivalence(R1, R2)["repo3"]

    def test_other(self) -> None:
        eq = Equivalence(R1, R2)
        assert eq.other(R1) == R2
        assert eq.other(R2) == R1
        assert eq.other(Revision(rev_id="3", repository_name="repo2")) is None

    def test_str(self) -> None:
        assert str(Equivalence(R1, R2)) == "repo1{1002} == repo2{2}"

    @given(pair=distinct_revision_pairs)
    @settings(max_examples=100)
    def test_order_never_matters(self, pair) -> None:
        a, b = pair
        assert Equivalence(a, b) == Equivalence(b, a)
        assert hash(Equivalence(a, b)) == hash(Equivalence(b, a))
        assert Equivalence(a, b).revisions == frozenset({a, b})


class TestSubmittedMigration:
    def test_directional(self) -> None:
        assert SubmittedMigration(R1, R2) == SubmittedMigration(R1, R2)
        assert SubmittedMigration(R1, R2) != SubmittedMigration(R2, R1)

    def test_str(self) -> None:
        assert str(SubmittedMigration(R1, R2)) == "repo1{1002} ==> repo2{2}"
