from archlens.agents import performance_sentinel
from archlens.config import merge_config
from archlens.models import ApiCallInfo, ExportInfo, Severity, StateInfo

from helpers import graph_of, module


def run(*modules, config=None):
    return performance_sentinel.run(graph_of(*modules), config or merge_config(None))


def component(path, name, **facts):
    return module(path, exports=[ExportInfo(name, "default")], **facts)


def test_heavy_page():
    imports = [f"pkg-{i}" for i in range(21)]
    (finding,) = run(module("app/dashboard/page.tsx", imports=imports))
    assert finding.title == "Heavy page"
    assert finding.message == "Page `/dashboard` has 21 imports (threshold: 20)"


def test_unnecessary_client_component():
    findings = run(
        component("src/components/Static.tsx", "Static", client_marked=True),
        component("src/components/Counter.tsx", "Counter", client_marked=True,
                  hooks=("useState",), state=(StateInfo("count", "0"),)),
        component("src/components/Server.tsx", "Server"),
    )
    (finding,) = findings
    assert finding.title == "Unnecessary client component"
    assert finding.file_path == "src/components/Static.tsx"
    assert finding.severity is Severity.WARNING


def test_api_call_waterfall():
    calls = tuple(ApiCallInfo(f"/api/r{i}") for i in range(6))
    (finding,) = run(module("app/page.tsx", api_calls=calls))
    assert finding.title == "API call waterfall risk"
    assert finding.message == "Page `/` makes 6 API calls (threshold: 5)"


def test_component_with_many_children_uses_threshold():
    renders = tuple(f"Child{i}" for i in range(8))
    comp = component("src/components/Grid.tsx", "Grid", elements=renders)
    assert run(comp) == []

    config = merge_config({"agents": {"thresholds": {"max_component_renders": 7}}})
    (finding,) = run(comp, config=config)
    assert finding.title == "Component with many children"
    assert finding.severity is Severity.INFO
    assert finding.message == "`Grid` renders 8 child components"
