from archlens.agents import architecture_guard
from archlens.config import merge_config
from archlens.models import ExportInfo, Severity

from helpers import graph_of, module


def run(*modules, config=None):
    return architecture_guard.run(graph_of(*modules), config or merge_config(None))


def test_oversized_file():
    (finding,) = run(module("src/lib/big.ts", line_count=501), module("src/lib/ok.ts", line_count=500))
    assert finding.title == "Oversized file"
    assert finding.severity is Severity.WARNING
    assert finding.message == "File has 501 lines (threshold: 500)"


def test_threshold_comes_from_config():
    config = merge_config({"agents": {"thresholds": {"max_line_count": 100}}})
    (finding,) = run(module("src/lib/mid.ts", line_count=150), config=config)
    assert finding.message == "File has 150 lines (threshold: 100)"


def test_god_component():
    imports = [f"lib-{i}" for i in range(16)]
    (finding,) = run(module("src/components/Dashboard.tsx", imports=imports,
                            exports=[ExportInfo("Dashboard", "default")]))
    assert finding.title == "God component"
    assert finding.message == "Component `Dashboard` has 16 imports (threshold: 15)"


def test_complex_page():
    elements = tuple(f"Widget{i}" for i in range(21))
    (finding,) = run(module("app/page.tsx", elements=elements))
    assert finding.title == "Complex page"
    assert finding.severity is Severity.INFO
    assert finding.message == "Page `/` renders 21 components"


def test_small_project_is_clean():
    assert run(module("app/page.tsx", elements=("A", "B")), module("src/lib/a.ts", line_count=20)) == []
