from archlens.agents import impact_analyzer
from archlens.config import merge_config
from archlens.models import ExportInfo, Severity

from helpers import graph_of, module


def run(*modules):
    return impact_analyzer.run(graph_of(*modules), merge_config(None))


def test_high_fan_in():
    importers = [module(f"src/lib/m{i}.ts", imports=["./db"]) for i in range(10)]
    (finding,) = run(module("src/lib/db.ts"), *importers)
    assert finding.title == "High-impact file (fan-in)"
    assert finding.file_path == "src/lib/db.ts"
    assert finding.message.startswith("10 files depend on this file")


def test_fan_in_below_threshold_is_quiet():
    importers = [module(f"src/lib/m{i}.ts", imports=["./db"]) for i in range(9)]
    assert run(module("src/lib/db.ts"), *importers) == []


def test_high_fan_out():
    targets = [module(f"src/lib/f{i}.ts") for i in range(15)]
    main = module("src/lib/main.ts", imports=[f"./f{i}" for i in range(15)])
    (finding,) = run(main, *targets)
    assert finding.title == "High coupling (fan-out)"
    assert finding.message == "File imports from 15 other files (threshold: 15)"


def test_hub_component():
    layout = module(
        "src/components/Layout.tsx",
        exports=[ExportInfo("Layout", "default")],
        elements=("Header", "Nav", "Main", "Aside", "Footer"),
    )
    pages = [module(f"app/p{i}/page.tsx", imports=["../../src/components/Layout"]) for i in range(5)]
    (finding,) = run(layout, *pages)
    assert finding.title == "Hub component"
    assert finding.severity is Severity.WARNING
    assert finding.message.startswith("`Layout` is used by 5 files and renders 5 children")


def test_bridge_file():
    dependents = [module(f"src/lib/a{i}.ts", imports=["./core"]) for i in range(5)]
    dependencies = [module(f"src/lib/b{i}.ts") for i in range(5)]
    core = module("src/lib/core.ts", imports=[f"./b{i}" for i in range(5)])
    (finding,) = run(core, *dependents, *dependencies)
    assert finding.title == "Bridge file"
    assert finding.severity is Severity.INFO
    assert finding.message == "File acts as a bridge: 5 dependents, 5 dependencies"
