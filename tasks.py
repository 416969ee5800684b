import os
import re
import sys

from invoke import task

version_file = os.path.join("python_formdata", "__init__.py")
version_regex = re.compile(r"((?:\d+)\.(?:\d+)\.(?:\d+))")


@task
def test(ctx):
    test_cmd = [
        "pytest",  # Test command
        "--cov-report term-missing",  # Print only uncovered lines to stdout
        "--cov python_formdata",  # Test only this package
        "--timeout=30",  # Each test should timeout after 30 sec
    ]

    # Test in this directory
    test_cmd.append("tests")

    res = ctx.run(" ".join(test_cmd), pty=False, warn=True)
    return res.ok


@task
def version(ctx):
    with open(version_file) as f:
        match = version_regex.search(f.read())
    print(match.group(0))


@task
def deploy(ctx):
    if not test(ctx):
        print("Tests must pass before deploying!", file=sys.stderr)
        return

    # Build source distribution and wheel
    ctx.run("python -m build")

    # Upload distributions from last step to pypi
    ctx.run("twine upload dist/*")
