import nox

PYTHON_VERSION = "3.11"


def _install(session):
    # pyproject.toml lives next to backend/
    session.chdir("..")
    session.run("poetry", "install", "--all-extras", external=True)


@nox.session(python=PYTHON_VERSION)
def tests(session):
    _install(session)
    session.run("poetry", "run", "pytest", "backend/tests/unit", external=True)


@nox.session(python=PYTHON_VERSION)
def lint(session):
    _install(session)
    session.run("poetry", "run", "ruff", "check", "backend", external=True)


@nox.session(python=PYTHON_VERSION)
def format(session):
    _install(session)
    session.run(
        "poetry",
        "run",
        "black",
        "--check",
        "backend/api",
        "backend/common",
        "backend/internal",
        "backend/packages",
        "backend/workers",
        external=True,
    )
    session.run("poetry", "run", "ruff", "check", "backend", external=True)
