"""
JSON report generator for modernization runs.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .base import ReportGenerator
from ..models import ComponentSummary, RunReport
from ..version import get_version


class JSONReporter(ReportGenerator):
    """
    JSON report generator, also the data source for the other formats.
    """
    
    def __init__(self, include_metadata: bool = True, pretty_print: bool = True):
        """
        Initialize JSON reporter.
        
        Args:
            include_metadata: Whether to include metadata like timestamps
            pretty_print: Whether to format JSON with indentation
        """
        self.include_metadata = include_metadata
        self.pretty_print = pretty_print
    
    def generate_report(self, run_report: RunReport, output_path: Optional[str] = None) -> str:
        report_data = self.get_structured_data(run_report)
        
        if self.pretty_print:
            json_content = json.dumps(report_data, indent=2, ensure_ascii=False)
        else:
            json_content = json.dumps(report_data, ensure_ascii=False)
        
        if output_path:
            self._write(json_content, output_path)
        
        return json_content
    
    def get_format_name(self) -> str:
        """Get the name of the report format."""
        return "json"
    
    def get_structured_data(self, run_report: RunReport) -> Dict[str, Any]:
        """
        Get structured data without converting to JSON string.
        Used by other reporters that need the data structure.
        
        Args:
            run_report: Run outcome to structure
            
        Returns:
            Dictionary containing structured report data
        """
        report = {
            "summary": self._build_summary(run_report),
            "components": self._build_components_list(run_report.components),
            "skipped": list(run_report.skipped),
        }
        
        if self.include_metadata:
            report["metadata"] = self._build_metadata()
        
        return report
    
    def _build_summary(self, run_report: RunReport) -> Dict[str, Any]:
        total = run_report.total_components
        failed = len(run_report.failed_components)
        return {
            "total_components": total,
            "succeeded": total - failed,
            "failed": failed,
            "skipped": len(run_report.skipped),
            "error_count": run_report.error_count,
            "dry_run": run_report.dry_run,
            "has_failures": failed > 0,
            "processing_time_seconds": round(run_report.processing_time, 3),
        }
    
    def _build_components_list(self, components: List[ComponentSummary]) -> List[Dict[str, Any]]:
        components_data = []
        for summary in components:
            components_data.append({
                "name": summary.name,
                "repository": summary.repository,
                "state": summary.state.value,
                "toolchain": summary.toolchain,
                "failed": summary.failed,
                "error_count": len(summary.errors),
                "errors": [{"stage": error.stage, "message": error.message} for error in summary.errors],
                "modified_files": list(summary.modified_files),
                "pull_request_url": summary.pull_request_url,
            })
        return components_data
    
    def _build_metadata(self) -> Dict[str, Any]:
        return {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "generator": "Plugin Modernizer",
            "version": get_version(),
            "report_format": self.get_format_name(),
        }
