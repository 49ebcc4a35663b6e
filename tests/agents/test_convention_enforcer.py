import pytest

from archlens.agents import convention_enforcer
from archlens.agents.convention_enforcer import hook_name_matches
from archlens.config import merge_config
from archlens.models import ExportInfo, Severity

from helpers import graph_of, module, route


def run(*modules):
    return convention_enforcer.run(graph_of(*modules), merge_config(None))


@pytest.mark.parametrize("stem, hook, expected", [
    ("useCart", "useCart", True),
    ("use-cart", "useCart", True),
    ("useCartItems", "useCart", True),
    ("cart", "useCart", False),
    ("useSession", "useCart", False),
])
def test_hook_name_matches(stem, hook, expected):
    assert hook_name_matches(stem, hook) is expected


def test_hook_naming_mismatch():
    findings = run(
        module("src/hooks/cart.ts", exports=["useCart"]),
        module("src/hooks/use-session.ts", exports=["useSession"]),
    )
    (finding,) = findings
    assert finding.title == "Hook naming mismatch"
    assert finding.file_path == "src/hooks/cart.ts"
    assert finding.message == "File `cart` exports hook `useCart`"
    assert "`useCart.ts`" in finding.suggestion


def test_inconsistent_auth_patterns():
    findings = run(
        route("app/api/a/route.ts", auth=("auth()",)),
        route("app/api/b/route.ts", auth=("getServerSession",)),
        route("app/api/c/route.ts", auth=("getServerSession",)),
        route("app/api/d/route.ts"),
    )
    (finding,) = findings
    assert finding.severity is Severity.WARNING
    assert finding.title == "Inconsistent auth patterns"
    assert finding.message == (
        "Multiple auth patterns detected: auth() (1 routes), getServerSession (2 routes)"
    )
    assert finding.file_path is None


def test_single_auth_pattern_is_consistent():
    assert run(
        route("app/api/a/route.ts", auth=("auth()",)),
        route("app/api/b/route.ts", auth=("auth()",)),
    ) == []


def test_route_casing_reports_once_per_route_and_ignores_params():
    findings = run(
        route("app/api/UserProfile/Settings/route.ts"),
        route("app/api/users/[userId]/route.ts"),
        route("app/api/order-items/route.ts"),
    )
    (finding,) = findings
    assert finding.title == "Non-kebab-case route"
    assert finding.message == "Route segment `UserProfile` in `/api/UserProfile/Settings` is not lowercase"


def test_missing_barrel_export():
    files = [module(f"src/components/Widget{i}.tsx") for i in range(4)]
    (finding,) = run(*files)
    assert finding.title == "Missing barrel export"
    assert finding.file_path == "src/components"
    assert finding.message == "Directory has 4 files but no index barrel export"


def test_barrels_not_expected_with_index_small_dirs_or_routing_dirs():
    with_index = [module(f"src/ui/Part{i}.tsx") for i in range(4)] + [module("src/ui/index.ts")]
    small = [module(f"src/lib/util{i}.ts") for i in range(3)]
    routing = [module(f"app/dashboard/part{i}.ts") for i in range(5)]
    assert run(*with_index, *small, *routing) == []


def test_hook_naming_checked_when_types_are_exported_first():
    (finding,) = run(module("src/hooks/cart.ts", exports=[ExportInfo("CartItem", "interface", True), "useCart"]))
    assert finding.title == "Hook naming mismatch"
    assert finding.message == "File `cart` exports hook `useCart`"
