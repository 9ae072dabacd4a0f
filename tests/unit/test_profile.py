"""Profiles: typed getters, inheritance, derivation and structural equality."""

from __future__ import annotations

from datetime import timedelta

import pytest

from driverconf import DefaultOption
from driverconf.errors import (
    ConfigurationError,
    KindMismatchError,
    OptionNotDefinedError,
    ProfileNotFoundError,
    ReservedProfileNameError,
)
from driverconf.options import Option, OptionKind
from driverconf.profile import DerivedProfile, ResolvedProfile
from driverconf.resolve import resolve, split_profiles
from driverconf.tree import expand
from driverconf.values import UNSET

pytestmark = pytest.mark.unit

TIMEOUT = DefaultOption.REQUEST_TIMEOUT
CONSISTENCY = DefaultOption.REQUEST_CONSISTENCY
PAGE_SIZE = DefaultOption.REQUEST_PAGE_SIZE
TRACING = DefaultOption.REQUEST_TRACING


def _profile(entries: dict, name: str = "default") -> ResolvedProfile:
    return resolve(expand(entries), 1).profile(name)


# --- resolution ---


def test_secondary_profile_overrides_and_inherits(slow_config) -> None:
    default = slow_config.default_profile
    slow = slow_config.profile("slow")

    assert default.get_string(CONSISTENCY) == "LOCAL_ONE"
    assert slow.get_string(CONSISTENCY) == "EACH_QUORUM"
    assert slow.get_duration(TIMEOUT) == timedelta(seconds=5)
    assert slow.get_int(PAGE_SIZE) == 5000
    assert slow_config.profile("analytics").get_int(PAGE_SIZE) == 100


def test_profile_names_always_include_default(slow_config) -> None:
    assert slow_config.profile_names == {"default", "slow", "analytics"}
    assert resolve(expand({}), 1).profile_names == {"default"}
    assert "slow" in slow_config
    assert "missing" not in slow_config


def test_default_profile_excludes_the_profiles_table(slow_config) -> None:
    assert not slow_config.default_profile.is_defined("profiles")
    assert all(not p.startswith("profiles.") for p, _ in slow_config.default_profile.entry_set())


def test_unknown_profile_lists_available_names(slow_config) -> None:
    with pytest.raises(ProfileNotFoundError) as exc:
        slow_config.profile("fast")
    assert isinstance(exc.value, KeyError)
    assert "slow" in (exc.value.hint or "")


def test_declaring_default_as_a_profile_is_rejected() -> None:
    with pytest.raises(ReservedProfileNameError):
        resolve(expand({"profiles.default.a": 1}), 1)


def test_profiles_must_be_tables() -> None:
    with pytest.raises(ConfigurationError, match="must be a table"):
        split_profiles(expand({"profiles.slow": 1}))
    with pytest.raises(ConfigurationError, match="table of named profiles"):
        split_profiles(expand({"profiles": [1]}))


def test_tombstoned_profile_is_not_declared() -> None:
    config = resolve(expand({"a": 1, "profiles.slow": None}), 1)
    assert config.profile_names == {"default"}


def test_profile_tombstone_hides_inherited_value() -> None:
    config = resolve(expand({"a.b": 1, "a.c": 2, "profiles.p.a.b": None}), 1)

    assert config.default_profile.get_int("a.b") == 1
    assert not config.profile("p").is_defined("a.b")
    assert config.profile("p").get_int("a.c") == 2


def test_resolved_tree_has_no_tombstones() -> None:
    config = resolve(expand({"a": None, "b": 1}), 3)
    assert config.tree == {"b": 1}
    assert config.generation == 3
    assert config.default_profile.generation == 3


# --- typed getters ---


def test_getters_fail_fast_when_undefined() -> None:
    profile = _profile({})
    with pytest.raises(OptionNotDefinedError) as exc:
        profile.get_int(PAGE_SIZE)
    assert exc.value.path == PAGE_SIZE.path
    assert str(exc.value) == f"Missing option {PAGE_SIZE.path!r} in profile 'default'"
    assert isinstance(exc.value, KeyError)


def test_getters_fail_fast_on_kind_mismatch() -> None:
    profile = _profile({PAGE_SIZE.path: "5000"})
    with pytest.raises(KindMismatchError):
        profile.get_int(PAGE_SIZE)


def test_get_dispatches_on_declared_kind() -> None:
    profile = _profile({TIMEOUT.path: 250, "a.list": [1, 2]})
    assert profile.get(TIMEOUT) == timedelta(milliseconds=250)
    assert profile.get(Option("a.list", OptionKind.LONG_LIST)) == [1, 2]
    with pytest.raises(ConfigurationError, match="declared kind"):
        profile.get("a.list")  # type: ignore[arg-type]


def test_every_kind_has_a_getter() -> None:
    profile = _profile(
        {
            "b": True,
            "bl": [True, False],
            "i": 1,
            "il": [1],
            "l": 2**40,
            "ll": [2**40],
            "d": 1.5,
            "dl": [1.5, 2],
            "s": "x",
            "sl": ["x", "y"],
            "m": {"k": "v"},
            "by": 65536,
            "byl": [1024],
            "du": timedelta(seconds=1),
            "dul": [timedelta(seconds=1), 500],
        }
    )
    assert profile.get_bool("b") is True
    assert profile.get_bool_list("bl") == [True, False]
    assert profile.get_int("i") == 1
    assert profile.get_int_list("il") == [1]
    assert profile.get_long("l") == 2**40
    assert profile.get_long_list("ll") == [2**40]
    assert profile.get_double("d") == 1.5
    assert profile.get_double_list("dl") == [1.5, 2.0]
    assert profile.get_string("s") == "x"
    assert profile.get_string_list("sl") == ["x", "y"]
    assert profile.get_string_map("m") == {"k": "v"}
    assert profile.get_bytes("by") == 65536
    assert profile.get_bytes_list("byl") == [1024]
    assert profile.get_duration("du") == timedelta(seconds=1)
    assert profile.get_duration_list("dul") == [
        timedelta(seconds=1),
        timedelta(milliseconds=500),
    ]


def test_entry_set_is_sorted_and_includes_inherited(slow_config) -> None:
    entries = slow_config.profile("slow").entry_set()
    assert [p for p, _ in entries] == sorted(p for p, _ in entries)
    assert ("basic.request.page-size", 5000) in entries
    assert ("basic.request.consistency", "EACH_QUORUM") in entries


# --- structural comparison ---


def test_profiles_with_identical_entries_are_equal() -> None:
    first = _profile({"a": 1, "b.c": [1, 2]})
    second = ResolvedProfile("other", expand({"b": {"c": [1, 2]}, "a": 1}))

    assert first == second
    assert hash(first) == hash(second)
    assert first != _profile({"a": 2, "b.c": [1, 2]})


def test_values_of_different_kinds_are_not_equal() -> None:
    flag = _profile({"a": True})
    number = _profile({"a": 1})

    assert flag != number
    assert _profile({"a": 1}) != _profile({"a": 1.0})
    assert flag.get_comparison_key("a") != number.get_comparison_key("a")
    assert len({flag, number, _profile({"a": 1.0})}) == 3


def test_dotted_map_keys_are_reachable_by_path() -> None:
    dotted = _profile({"m": {"a.b": "v"}})
    nested = _profile({"m": {"a": {"b": "v"}}})

    assert dotted.entry_set() == (("m.a.b", "v"),)
    assert dotted.is_defined("m.a.b")
    assert dotted.get_string("m.a.b") == "v"
    assert dotted == nested
    assert hash(dotted) == hash(nested)


def test_every_listed_entry_is_defined() -> None:
    derived = _profile({}).with_string_map("n", {"x": {"y": "z"}, "10.0.0.1": "dc1"})

    for path, value in derived.entry_set():
        assert derived.is_defined(path)
        assert derived.get_string(path) == value
    assert derived.get_string_map("n") == {"10.0.0.1": "dc1", "x.y": "z"}


def test_comparison_key_compares_sections(slow_config) -> None:
    default = slow_config.default_profile
    analytics = slow_config.profile("analytics")
    slow = slow_config.profile("slow")

    assert default.get_comparison_key("basic.request") != analytics.get_comparison_key(
        "basic.request"
    )
    assert default.get_comparison_key(TIMEOUT) == analytics.get_comparison_key(TIMEOUT)
    assert default.get_comparison_key(TIMEOUT) != slow.get_comparison_key(TIMEOUT)
    with pytest.raises(OptionNotDefinedError):
        default.get_comparison_key("advanced")


# --- derived profiles ---


def test_with_returns_a_new_profile_and_leaves_the_original() -> None:
    base = _profile({PAGE_SIZE.path: 10})
    derived = base.with_int(PAGE_SIZE, 20)

    assert isinstance(derived, DerivedProfile)
    assert derived.get_int(PAGE_SIZE) == 20
    assert base.get_int(PAGE_SIZE) == 10
    assert derived.name == base.name


def test_last_override_wins() -> None:
    profile = _profile({}).with_bool(TRACING, True).with_bool(TRACING, False)
    assert profile.get_bool(TRACING) is False


def test_without_hides_the_inherited_value() -> None:
    base = _profile({PAGE_SIZE.path: 10, TIMEOUT.path: 100})
    derived = base.without(PAGE_SIZE)

    assert not derived.is_defined(PAGE_SIZE)
    assert derived.get_duration(TIMEOUT) == timedelta(milliseconds=100)
    assert derived.with_int(PAGE_SIZE, 1).get_int(PAGE_SIZE) == 1


def test_override_at_a_parent_path_replaces_the_section() -> None:
    base = _profile({"a.x": 1, "a.y": 2})
    derived = base.with_int("a.b", 5).with_value("a", {"c": 3})

    assert derived.overrides == {"a": {"c": 3}}
    assert not derived.is_defined("a.x")
    assert not derived.is_defined("a.b")
    assert derived.get_int("a.c") == 3


def test_override_beneath_a_section_keeps_its_siblings() -> None:
    derived = _profile({"a.x": 1, "a.y": 2}).with_int("a.x", 10)
    assert derived.get_int("a.x") == 10
    assert derived.get_int("a.y") == 2


def test_typed_setters_validate_their_argument() -> None:
    base = _profile({})
    with pytest.raises(ConfigurationError):
        base.with_int(PAGE_SIZE, "10")  # type: ignore[arg-type]
    with pytest.raises(ConfigurationError):
        base.with_int(PAGE_SIZE, None)  # type: ignore[arg-type]
    with pytest.raises(ConfigurationError):
        base.with_duration(TIMEOUT, 1.5)  # type: ignore[arg-type]


def test_typed_setters_store_normalized_values() -> None:
    derived = (
        _profile({})
        .with_string_list(DefaultOption.CONTACT_POINTS, ["127.0.0.1:9042"])
        .with_duration_list(
            DefaultOption.SPECULATIVE_EXECUTION_DELAYS, [timedelta(milliseconds=10)]
        )
        .with_string_map(DefaultOption.AUTH_PROVIDER_CREDENTIALS, {"user": "u"})
    )
    assert derived.get_string_list(DefaultOption.CONTACT_POINTS) == ["127.0.0.1:9042"]
    assert derived.get_duration_list(DefaultOption.SPECULATIVE_EXECUTION_DELAYS) == [
        timedelta(milliseconds=10)
    ]
    assert derived.get_string_map(DefaultOption.AUTH_PROVIDER_CREDENTIALS) == {
        "user": "u"
    }


def test_derived_profile_equals_profile_with_same_entries() -> None:
    derived = _profile({"a": 1}).with_int("b", 2)
    assert derived == _profile({"a": 1, "b": 2})
    assert hash(derived) == hash(_profile({"b": 2, "a": 1}))


def test_derived_without_coordinator_is_pinned_to_its_snapshot() -> None:
    base = _profile({"a": 1})
    derived = base.with_int("b", 2)
    assert derived.parent is base
    assert derived.generation == 1
    assert derived.parent_generation_seen is None
    derived.get_int("a")
    assert derived.parent_generation_seen == 1


def test_unset_override_is_a_tombstone() -> None:
    derived = _profile({"a": 1}).with_value("a", UNSET)
    assert not derived.is_defined("a")
    assert derived.entry_set() == ()
