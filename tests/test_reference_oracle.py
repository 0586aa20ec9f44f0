import textwrap

import pytest

from parity.oracles import (
    ExecutionStatus,
    OracleInfrastructureError,
    ProgramSource,
    ReferenceOracle,
    invariant_locale,
)


def _program(text):
    return ProgramSource(textwrap.dedent(text))


def test_captures_stdout_and_stderr():
    result = ReferenceOracle().execute(_program("""
        import sys

        class Program:
            @staticmethod
            def main():
                print("hello")
                print("oops", file=sys.stderr)
                print("Program End")
    """))

    assert result.status == ExecutionStatus.SUCCESS
    assert result.output_text == "hello\noops\nProgram End\n"
    assert result.ok


def test_syntax_error_is_compile_error():
    result = ReferenceOracle().execute(ProgramSource("class Program:\n    def main(:\n"))

    assert result.status == ExecutionStatus.COMPILE_ERROR
    assert result.diagnostic.startswith("SyntaxError")
    assert result.output_text == ""


def test_missing_entry_point_is_compile_error_and_nothing_runs():
    result = ReferenceOracle().execute(_program("""
        print("module body")

        class Program:
            def start():
                pass
    """))

    assert result.status == ExecutionStatus.COMPILE_ERROR
    assert "Program.main" in result.diagnostic
    assert result.output_text == ""


def test_unhandled_exception_is_runtime_error_with_partial_output():
    result = ReferenceOracle().execute(_program("""
        class Program:
            @staticmethod
            def main():
                print("before")
                raise ValueError("bad value")
    """))

    assert result.status == ExecutionStatus.RUNTIME_ERROR
    assert result.output_text == "before\n"
    assert "ValueError: bad value" in result.diagnostic


def test_async_entry_point_runs_to_completion():
    result = ReferenceOracle().execute(_program("""
        import asyncio

        class Program:
            @staticmethod
            async def main():
                await asyncio.sleep(0)
                print("done")
    """))

    assert result.status == ExecutionStatus.SUCCESS
    assert result.output_text == "done\n"


def test_top_level_function_entry_point_receives_args():
    result = ReferenceOracle(entry_point="main").execute(_program("""
        def main(args):
            print(len(args))
    """))

    assert result.status == ExecutionStatus.SUCCESS
    assert result.output_text == "0\n"


@pytest.mark.parametrize("code,status", [
    (0, ExecutionStatus.SUCCESS),
    (None, ExecutionStatus.SUCCESS),
    (3, ExecutionStatus.RUNTIME_ERROR),
])
def test_system_exit(code, status):
    result = ReferenceOracle().execute(_program(f"""
        import sys

        class Program:
            @staticmethod
            def main():
                print("x")
                sys.exit({code!r})
    """))

    assert result.status == status
    assert result.output_text == "x\n"


def test_runs_are_isolated_from_each_other():
    oracle = ReferenceOracle()
    source = _program("""
        counter = []

        class Program:
            @staticmethod
            def main():
                counter.append(1)
                print(len(counter))
    """)

    assert oracle.execute(source).output_text == "1\n"
    assert oracle.execute(source).output_text == "1\n"


def test_unknown_locale_is_infrastructure_error():
    oracle = ReferenceOracle(locale_name="xx_NOT_A_LOCALE.UTF-8")
    with pytest.raises(OracleInfrastructureError):
        oracle.execute(_program("""
            class Program:
                def main():
                    pass
        """))


def test_invariant_locale_restores_previous_setting():
    import locale

    before = locale.setlocale(locale.LC_ALL)
    with invariant_locale("C"):
        assert locale.localeconv()["decimal_point"] == "."
    assert locale.setlocale(locale.LC_ALL) == before


def test_endless_loop_times_out():
    result = ReferenceOracle(timeout=1).execute(_program("""
        class Program:
            def main():
                print("started")
                while True:
                    pass
    """))

    assert result.status == ExecutionStatus.TIMEOUT
    assert "1s" in result.diagnostic
    assert result.duration >= 1


def test_hard_exit_is_runtime_error():
    result = ReferenceOracle().execute(_program("""
        import os

        class Program:
            def main():
                os._exit(3)
    """))

    assert result.status == ExecutionStatus.RUNTIME_ERROR
    assert "code 3" in result.diagnostic


def test_inline_run_matches_bounded_run():
    source = _program("""
        class Program:
            def main():
                print(1.5, True)
                raise KeyError("k")
    """)

    inline = ReferenceOracle(timeout=None).execute(source)
    bounded = ReferenceOracle().execute(source)

    assert inline.status == bounded.status == ExecutionStatus.RUNTIME_ERROR
    assert inline.output_text == bounded.output_text == "1.5 True\n"
    assert "KeyError" in bounded.diagnostic


def test_missing_interpreter_is_infrastructure_error(tmp_path):
    oracle = ReferenceOracle(python=str(tmp_path / "no-such-python"))
    with pytest.raises(OracleInfrastructureError):
        oracle.execute(_program("""
            class Program:
                def main():
                    pass
        """))
