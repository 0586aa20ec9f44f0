"""
Child-process side of a bounded reference run.

Reads one JSON request from stdin, runs the program in this interpreter and
writes the result as the last marked line on stdout. The parent kills the
process when its time bound passes.
"""
import json
import os
import sys

from .errors import OracleInfrastructureError
from .reference import READY_MARKER, RESULT_MARKER, ReferenceOracle
from .types import ProgramSource


def main() -> None:
    out = sys.stdout
    out.write(READY_MARKER + "\n")
    out.flush()

    request = json.loads(sys.stdin.read())
    oracle = ReferenceOracle(
        entry_point=request["entry_point"],
        locale_name=request["locale"],
        filename=request["filename"],
        timeout=None,
    )
    try:
        payload = {"result": oracle.execute(ProgramSource(request["source"])).to_dict()}
    except OracleInfrastructureError as e:
        payload = {"infrastructure": str(e)}

    out.write(RESULT_MARKER + json.dumps(payload) + "\n")
    out.flush()
    # Threads the program left running must not keep the worker alive.
    os._exit(0)


if __name__ == "__main__":
    main()
