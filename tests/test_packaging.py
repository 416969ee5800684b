import os
import re

root_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def read(name: str) -> str:
    with open(os.path.join(root_dir, name)) as f:
        return f.read()


def test_deploy_tools_in_dev_extra() -> None:
    dev_line = next(line for line in read("setup.py").splitlines() if "'dev'" in line)
    deploy_tools = re.findall(r'ctx\.run\("(?:python -m )?(\w+)', read("tasks.py"))

    assert deploy_tools
    for tool in deploy_tools:
        if tool == "pytest":
            continue
        assert f"'{tool}'" in dev_line
