import os
from pathlib import Path

import pytest

from leak_extractor.cli import main

requires_live = pytest.mark.skipif(
    os.getenv("RUN_LIVE_INTEGRATION") != "1" or not os.getenv("ES_URL"),
    reason="Set RUN_LIVE_INTEGRATION=1 and ES_URL/ES_USERNAME/ES_PASSWORD to run live tests.",
)


@requires_live
def test_live_domain_extraction_smoke(tmp_path: Path) -> None:
    output = tmp_path / "live.csv"
    exit_code = main(
        [
            "--url",
            os.environ["ES_URL"],
            "--domain",
            os.getenv("LIVE_DOMAIN", "example.com"),
            "--limit",
            "10",
            "--outfile",
            str(output),
            "--no-progress",
        ]
    )
    assert exit_code in {0, 4, 5}
