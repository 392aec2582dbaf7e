"""Pytest configuration and fixtures."""

import json
from pathlib import Path

import pytest

from license_bom.classifier import LicenseStore
from license_bom.config import Config

MIT_TEXT = """MIT License

Copyright (c) <year> <copyright holders>

Permission is hereby granted, free of charge, to any person obtaining a copy of this software and associated documentation files (the "Software"), to deal in the Software without restriction, including without limitation the rights to use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies of the Software, and to permit persons to whom the Software is furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.
"""

ISC_TEXT = """ISC License

Copyright (c) <year> <copyright holders>

Permission to use, copy, modify, and/or distribute this software for any purpose with or without fee is hereby granted, provided that the above copyright notice and this permission notice appear in all copies.

THE SOFTWARE IS PROVIDED "AS IS" AND THE AUTHOR DISCLAIMS ALL WARRANTIES WITH REGARD TO THIS SOFTWARE INCLUDING ALL IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS. IN NO EVENT SHALL THE AUTHOR BE LIABLE FOR ANY SPECIAL, DIRECT, INDIRECT, OR CONSEQUENTIAL DAMAGES OR ANY DAMAGES WHATSOEVER RESULTING FROM LOSS OF USE, DATA OR PROFITS, WHETHER IN AN ACTION OF CONTRACT, NEGLIGENCE OR OTHER TORTIOUS ACTION, ARISING OUT OF OR IN CONNECTION WITH THE USE OR PERFORMANCE OF THIS SOFTWARE.
"""

BSD_2_CLAUSE_TEXT = """Copyright (c) <year> <owner>

Redistribution and use in source and binary forms, with or without modification, are permitted provided that the following conditions are met:

1. Redistributions of source code must retain the above copyright notice, this list of conditions and the following disclaimer.

2. Redistributions in binary form must reproduce the above copyright notice, this list of conditions and the following disclaimer in the documentation and/or other materials provided with the distribution.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
"""

CORPUS_TEXTS = {
    "BSD-2-Clause": BSD_2_CLAUSE_TEXT,
    "ISC": ISC_TEXT,
    "MIT": MIT_TEXT,
}


@pytest.fixture
def mit_text() -> str:
    """Return the canonical MIT license text."""
    return MIT_TEXT


@pytest.fixture
def isc_text() -> str:
    """Return the canonical ISC license text."""
    return ISC_TEXT


@pytest.fixture
def bsd_text() -> str:
    return BSD_2_CLAUSE_TEXT


@pytest.fixture(scope="session")
def store() -> LicenseStore:
    """Return a small reference corpus."""
    return LicenseStore(CORPUS_TEXTS, version="3.24")


@pytest.fixture
def corpus_file(tmp_path: Path) -> Path:
    """Write the reference corpus as a versioned JSON artifact."""
    path = tmp_path / "corpus.json"
    path.write_text(
        json.dumps({"license_list_version": "3.24", "licenses": CORPUS_TEXTS}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def config() -> Config:
    """Return a configuration accepting MIT, ISC and BSD-2-Clause."""
    return Config(accepted=["MIT", "ISC", "BSD-2-Clause"], exclude=["internal-*"])


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Create a dependency graph export with license files on disk.

    Layout:
        dual-lib 1.0.0   MIT OR Apache-2.0, LICENSE-MIT + LICENSE-APACHE
        isc-lib 2.1.0    ISC, LICENSE
        internal-core    excluded by name, references a third-party manifest
    """
    dual = tmp_path / "dual-lib"
    dual.mkdir()
    (dual / "LICENSE-MIT").write_text(MIT_TEXT, encoding="utf-8")
    (dual / "LICENSE-APACHE").write_text("Apache License\nVersion 2.0\n", encoding="utf-8")

    isc = tmp_path / "isc-lib"
    isc.mkdir()
    (isc / "LICENSE").write_text(ISC_TEXT, encoding="utf-8")

    core = tmp_path / "internal-core"
    core.mkdir()
    thirdparty = [
        {
            "package_name": "vendored-zlib-like",
            "package_version": "1.3",
            "package_url": "https://example.org/vendored",
            "license_spdx": "BSD-2-Clause",
            "license_files": [
                {"name": "LICENSE", "spdx": None, "text": BSD_2_CLAUSE_TEXT},
            ],
        }
    ]
    (core / "thirdparty.json").write_text(json.dumps(thirdparty), encoding="utf-8")

    graph = {
        "packages": [
            {
                "name": "dual-lib",
                "version": "1.0.0",
                "repository": "https://github.com/example/dual-lib",
                "manifest_dir": "dual-lib",
                "license": "MIT OR Apache-2.0",
                "license_files": [
                    {"path": "LICENSE-MIT", "license": "MIT"},
                    {"path": "LICENSE-APACHE", "license": "Apache-2.0"},
                ],
            },
            {
                "name": "isc-lib",
                "version": "2.1.0",
                "homepage": "https://isc-lib.example.org",
                "manifest_path": "isc-lib/package.json",
                "license": "ISC",
                "license_files": [{"path": "LICENSE", "license": "ISC"}],
            },
            {
                "name": "internal-core",
                "version": "0.1.0",
                "manifest_dir": "internal-core",
                "license": None,
                "metadata": {
                    "license-bom": {"thirdparty-file-name": "thirdparty.json"}
                },
            },
        ]
    }
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(graph), encoding="utf-8")
    return path
