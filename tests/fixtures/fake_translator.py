#!/usr/bin/env python3
"""
Translator stand-in: fake_translator.py SOURCE OUTDIR

Writes runtime.js, a minified copy that must be ignored, and program.js
holding the source as comments. Sources containing "reject-me" fail with
exit code 1; sources containing "emit-nothing" produce no files.
"""
import sys
from pathlib import Path


def main():
    source, outdir = Path(sys.argv[1]), Path(sys.argv[2])
    text = source.read_text(encoding="utf-8")
    if "reject-me" in text:
        sys.stderr.write("error: unsupported construct\n")
        return 1
    if "emit-nothing" in text:
        return 0
    (outdir / "runtime.js").write_text("var runtime = true;\n", encoding="utf-8")
    (outdir / "program.min.js").write_text("minified\n", encoding="utf-8")
    body = "".join(f"// {line}\n" for line in text.splitlines())
    (outdir / "program.js").write_text(body, encoding="utf-8")
    return 0


if __name__ == "__main__":
    sys.exit(main())
