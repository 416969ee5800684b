import nox

nox.needs_version = ">=2024.4.15"
nox.options.default_venv_backend = "uv|virtualenv"


@nox.session
@nox.parametrize("editable", [True, False])
def tests(session: nox.Session, editable: bool) -> None:
    session.install("-e.[test]" if editable else ".[test]")
    session.run("pytest", "--timeout=30", "tests", *session.posargs)


@nox.session
def public_api(session: nox.Session) -> None:
    session.install(".")
    out = session.run(
        "python",
        "-c",
        "import python_formdata; print(sorted(python_formdata.__all__))",
        silent=True,
    )
    assert "FormData" in out
    assert "generate_boundary" in out


@nox.session
def fuzz(session: nox.Session) -> None:
    session.install(".", "atheris")
    session.chdir("fuzz")
    for target in ("fuzz_quote_string.py", "fuzz_writer.py"):
        session.run("python", target, "-runs=10000")
