#!/usr/bin/env python3
"""
Sandbox driver stand-in speaking the JSON-lines protocol of sandbox_driver.js.

Each artifact line is a command:
    print <text>       emit an output line
    stray <text>       emit an output line tagged with another request id
    throw <text>       report a program fault
    late-throw <text>  report a fault raised by the previous request
    hang               stop responding to this request
    exit               terminate the driver
"""
import json
import sys


def emit(message):
    sys.stdout.write(json.dumps(message) + "\n")
    sys.stdout.flush()


def main():
    emit({"id": None, "type": "ready"})
    for raw in sys.stdin:
        request = json.loads(raw)
        request_id = request["id"]
        for line in request["code"].splitlines():
            command, _, text = line.partition(" ")
            if command == "print":
                emit({"id": request_id, "type": "line", "text": text})
            elif command == "stray":
                emit({"id": -1, "type": "line", "text": text})
            elif command == "late-throw":
                emit({"id": request_id - 1, "type": "error", "text": text})
            elif command == "throw":
                emit({"id": request_id, "type": "error", "text": text})
                break
            elif command == "hang":
                break
            elif command == "exit":
                sys.exit(3)
        else:
            emit({"id": request_id, "type": "evaluated"})


if __name__ == "__main__":
    main()
