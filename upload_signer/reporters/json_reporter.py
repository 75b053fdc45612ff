"""JSON reporter for structured probe output.

Writes the probe report as JSON, for CI artifacts or for comparing
buckets over time.
"""

import json
from pathlib import Path
from typing import Optional

from upload_signer.reporters.base import Reporter
from upload_signer.models import CaseResult, ProbeReport


class JsonReporter(Reporter):
    """JSON reporter for structured output.

    Args:
        output_path: Optional file path to write JSON output
    """

    def __init__(self, output_path: Optional[str] = None):
        self.output_path = output_path

    def on_case_start(self, case_id: str) -> None:
        """No-op for JSON reporter."""
        pass

    def on_case_complete(self, result: CaseResult) -> None:
        """No-op - data comes from the final report."""
        pass

    def on_run_complete(self, report: ProbeReport) -> dict:
        """Generate and write the JSON data.

        Args:
            report: The finished probe report

        Returns:
            The generated JSON data as a dictionary
        """
        output = report.to_dict()
        output["summary"]["all_passed"] = report.all_passed

        if self.output_path:
            self._write_to_file(output)

        return output

    def _write_to_file(self, output: dict) -> None:
        path = Path(self.output_path)

        # Create parent directories if needed
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(output, f, indent=2)
