from __future__ import annotations

from decimal import Decimal

import pytest

from apps.catalog.models import CreditMapping
from apps.catalog.services import mapping_applies, resolve_credit, resolve_credit_views
from apps.core.errors import AmbiguousMapping, NotFound


pytestmark = pytest.mark.django_db


def _countries(mappings):
    return sorted(mapping.country for mapping in mappings)


def test_international_mapping_applies_in_any_country(activity_factory):
    activity = activity_factory(mappings=[{"country": "INTL"}])

    assert _countries(resolve_credit(activity.pk, "ZA")) == ["INTL"]
    assert _countries(resolve_credit(activity.pk, "US", "NY")) == ["INTL"]


def test_country_mapping_and_international_mapping_both_apply(activity_factory):
    activity = activity_factory(mappings=[{"country": "US"}, {"country": "INTL"}, {"country": "GB"}])

    assert _countries(resolve_credit(activity.pk, "US", "TX")) == ["INTL", "US"]


def test_allow_list_requires_state_membership(activity_factory):
    activity = activity_factory(mappings=[{"country": "US", "state_allow_list": ["ca", "NY"]}])

    assert _countries(resolve_credit(activity.pk, "US", "CA")) == ["US"]
    assert resolve_credit(activity.pk, "US", "TX") == []


def test_allow_list_excludes_learner_without_state(activity_factory):
    activity = activity_factory(mappings=[{"country": "US", "state_allow_list": ["CA"]}])

    assert resolve_credit(activity.pk, "US") == []


def test_deny_list_excludes_listed_states_only(activity_factory):
    activity = activity_factory(mappings=[{"country": "US", "state_deny_list": ["TX"]}])

    assert resolve_credit(activity.pk, "US", "TX") == []
    assert _countries(resolve_credit(activity.pk, "US", "CA")) == ["US"]
    assert _countries(resolve_credit(activity.pk, "US")) == ["US"]


def test_codes_are_compared_case_insensitively(activity_factory):
    activity = activity_factory(mappings=[{"country": "us", "state_allow_list": [" ca "]}])

    assert _countries(resolve_credit(activity.pk, " Us ", "Ca")) == ["US"]


def test_inactive_mappings_are_never_returned(activity_factory):
    activity = activity_factory(mappings=[{"country": "US", "active": False}, {"country": "INTL", "active": False}])

    assert resolve_credit(activity.pk, "US", "CA") == []


def test_no_matching_mapping_is_not_an_error(activity_factory):
    activity = activity_factory(mappings=[{"country": "GB"}])

    assert resolve_credit(activity.pk, "US") == []


def test_missing_or_retired_activity_raises_not_found(activity_factory):
    retired = activity_factory(mappings=[{"country": "US"}], active=False)

    with pytest.raises(NotFound):
        resolve_credit(retired.pk, "US")
    with pytest.raises(NotFound):
        resolve_credit(retired.pk + 1000, "US")


def test_mapping_with_allow_and_deny_lists_is_rejected(activity_factory):
    activity = activity_factory()

    with pytest.raises(AmbiguousMapping):
        CreditMapping.objects.create(
            activity=activity,
            country="US",
            credit_amount=Decimal("1.00"),
            state_allow_list=["CA"],
            state_deny_list=["TX"],
        )
    assert not CreditMapping.objects.filter(activity=activity).exists()


def test_international_mapping_cannot_filter_states(activity_factory):
    activity = activity_factory()

    with pytest.raises(AmbiguousMapping):
        CreditMapping.objects.create(
            activity=activity,
            country="intl",
            credit_amount=Decimal("1.00"),
            state_deny_list=["TX"],
        )


def test_mapping_applies_ignores_state_for_international_mapping():
    mapping = CreditMapping(country="INTL", credit_amount=Decimal("1.00"))

    assert mapping_applies(mapping, "AU", "NSW") is True


def test_credit_views_resolve_each_grant_with_its_jurisdiction(
    activity_factory, credential_factory, grant_factory, learner
):
    cpa = credential_factory("CPA", country="US")
    cfa = credential_factory("ACCA", country="GB")
    activity = activity_factory(
        mappings=[
            {"country": "US", "state_allow_list": ["CA"], "credit_amount": Decimal("2.00")},
            {"country": "US", "credit_amount": Decimal("1.00"), "credit_category": "ethics"},
        ]
    )
    grant_factory(learner, cpa, jurisdiction="CA", is_primary=True)
    grant_factory(learner, cfa, jurisdiction="")

    views = resolve_credit_views(activity.pk, learner)

    assert [view.grant.credential.name for view in views] == ["CPA", "ACCA"]
    cpa_view, acca_view = views
    assert cpa_view.eligible is True
    assert cpa_view.total_credits == Decimal("3.00")
    assert cpa_view.credit_unit == "hours"
    assert cpa_view.categories == {"general": Decimal("2.00"), "ethics": Decimal("1.00")}
    assert acca_view.eligible is False
    assert acca_view.total_credits == Decimal("0")
    assert acca_view.credit_unit is None


def test_credit_views_drop_mappings_pinned_to_other_credentials(
    activity_factory, credential_factory, grant_factory, learner
):
    held = credential_factory("CPA")
    other = credential_factory("EA")
    activity = activity_factory(
        mappings=[
            {"country": "US", "credential": other},
            {"country": "INTL", "credential": held, "credit_amount": Decimal("0.50")},
        ]
    )
    grant_factory(learner, held)

    (view,) = resolve_credit_views(activity.pk, learner)

    assert _countries(view.mappings) == ["INTL"]
    assert view.total_credits == Decimal("0.50")


def test_credit_views_can_be_limited_to_one_credential(
    activity_factory, credential_factory, grant_factory, learner
):
    first = credential_factory("CPA")
    second = credential_factory("CMA")
    activity = activity_factory(mappings=[{"country": "US"}])
    grant_factory(learner, first)
    grant_factory(learner, second)

    views = resolve_credit_views(activity.pk, learner, credential_id=second.pk)

    assert [view.grant.credential_id for view in views] == [second.pk]
