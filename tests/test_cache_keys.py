"""
Tests for cache key derivation.
"""
from classroom.cache import ANONYMOUS_PRINCIPAL, build_key
from classroom.datastore import Query


def test_same_request_same_key():
    descriptor = [["select", "*"], ["eq", "organization_id", "org-1"]]
    assert build_key("interactive_assignment", descriptor, "user-1") == build_key(
        "interactive_assignment", list(descriptor), "user-1"
    )


def test_key_starts_with_resource_and_principal():
    key = build_key("organization", [["select", "id,name"]], "user-1")
    assert key.startswith("organization:user-1:")


def test_missing_principal_uses_anonymous_partition():
    key = build_key("organization", [["select", "*"]])
    assert key.startswith(f"organization:{ANONYMOUS_PRINCIPAL}:")
    assert key != build_key("organization", [["select", "*"]], "user-1")


def test_principals_never_share_a_key():
    descriptor = [["select", "*"]]
    assert build_key("assignments", descriptor, "A") != build_key("assignments", descriptor, "B")


def test_resource_is_part_of_the_key():
    descriptor = [["select", "*"]]
    assert build_key("organization", descriptor) != build_key("anonymous_user", descriptor)


def test_different_filters_produce_different_keys():
    a = Query("interactive_assignment").select("*").eq("id", "asg-1").descriptor()
    b = Query("interactive_assignment").select("*").eq("id", "asg-2").descriptor()
    assert build_key("interactive_assignment", a) != build_key("interactive_assignment", b)


def test_filter_order_is_significant():
    """Equivalent queries written in another order are separate entries."""
    a = Query("user_organization").select("role").eq("user_id", "u").eq("organization_id", "o")
    b = Query("user_organization").select("role").eq("organization_id", "o").eq("user_id", "u")
    assert build_key("user_organization", a.descriptor()) != build_key("user_organization", b.descriptor())


def test_key_is_printable_for_non_json_values():
    from datetime import date

    key = build_key("interactive_submission", [["gte", "started_at", date(2024, 3, 1)]], "user-1")
    assert key.isprintable()
    assert " " not in key


def test_principal_named_like_sentinel_gets_its_own_partition():
    descriptor = [["select", "*"]]
    anonymous = build_key("organization", descriptor)
    assert build_key("organization", descriptor, ANONYMOUS_PRINCIPAL) != anonymous
    assert build_key("organization", descriptor, "~anonymous") != build_key(
        "organization", descriptor, ANONYMOUS_PRINCIPAL
    )
    assert build_key("organization", descriptor, "") == anonymous
