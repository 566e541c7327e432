"""
Human-readable text report generator for modernization runs.
"""

import os
import re
import sys
from typing import Any, Dict, List, Optional

from .base import ReportGenerator
from .json_reporter import JSONReporter
from ..models import RunReport


class TextReporter(ReportGenerator):
    """
    Human-readable text report generator for console output.
    Uses JSONReporter internally for data structuring.
    """
    
    COLORS = {
        'RED': '\033[91m',
        'GREEN': '\033[92m',
        'YELLOW': '\033[93m',
        'CYAN': '\033[96m',
        'BOLD': '\033[1m',
        'RESET': '\033[0m'
    }
    
    def __init__(self, use_colors: Optional[bool] = None, width: int = 80, detailed: bool = False):
        """
        Initialize text reporter.
        
        Args:
            use_colors: Whether to use ANSI color codes. Auto-detects if None.
            width: Console width for formatting (default: 80)
            detailed: Whether to list modified files of every component
        """
        self.use_colors = self._supports_color() if use_colors is None else use_colors
        self.width = width
        self.detailed = detailed
        self.json_reporter = JSONReporter(include_metadata=True)
    
    def generate_report(self, run_report: RunReport, output_path: Optional[str] = None) -> str:
        data = self.json_reporter.get_structured_data(run_report)
        text_content = self._build_text_report(data)
        
        # Files never get color codes
        if output_path:
            self._write(self._strip_colors(text_content), output_path)
        
        return text_content
    
    def get_format_name(self) -> str:
        """Get the name of the report format."""
        return "text"
    
    def _supports_color(self) -> bool:
        if os.environ.get('NO_COLOR'):
            return False
        if not hasattr(sys.stdout, 'isatty') or not sys.stdout.isatty():
            return False
        term = os.environ.get('TERM', '').lower()
        return 'color' in term or term in ['xterm', 'screen']
    
    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors or color not in self.COLORS:
            return text
        return f"{self.COLORS[color]}{text}{self.COLORS['RESET']}"
    
    def _strip_colors(self, text: str) -> str:
        ansi_escape = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')
        return ansi_escape.sub('', text)
    
    def _build_text_report(self, data: Dict[str, Any]) -> str:
        sections = [
            self._build_header(data["summary"]),
            self._build_components_section(data["components"]),
        ]
        
        failed = [c for c in data["components"] if c["failed"]]
        if failed:
            sections.append(self._build_failures_section(failed))
        
        if data["skipped"]:
            sections.append(self._build_skipped_section(data["skipped"]))
        
        return "\n\n".join(sections)
    
    def _build_header(self, summary: Dict[str, Any]) -> str:
        if summary["has_failures"]:
            status = self._colorize("FAILURES FOUND", "RED")
        else:
            status = self._colorize("ALL PLUGINS PROCESSED", "GREEN")
        mode = " (dry run)" if summary["dry_run"] else ""
        
        lines = [
            "=" * self.width,
            self._colorize(f"PLUGIN MODERNIZATION REPORT{mode}", "BOLD"),
            "=" * self.width,
            f"Status: {status}",
            f"Plugins: {summary['total_components']} processed, "
            f"{summary['succeeded']} succeeded, {summary['failed']} failed, {summary['skipped']} skipped",
            f"Errors: {summary['error_count']}",
            f"Time: {summary['processing_time_seconds']}s",
        ]
        return "\n".join(lines)
    
    def _build_components_section(self, components: List[Dict[str, Any]]) -> str:
        lines = [self._colorize("PLUGINS", "BOLD"), "-" * self.width]
        if not components:
            lines.append("No plugins processed")
        for component in components:
            marker = self._colorize("FAILED", "RED") if component["failed"] else self._colorize("OK", "GREEN")
            toolchain = f"Java {component['toolchain']}" if component["toolchain"] else "no toolchain"
            lines.append(f"{component['name']}: {marker} [{component['state']}, {toolchain}, "
                         f"{len(component['modified_files'])} modified files]")
            if component["pull_request_url"]:
                lines.append(f"  Pull request: {component['pull_request_url']}")
            if self.detailed:
                for path in component["modified_files"]:
                    lines.append(f"  - {path}")
        return "\n".join(lines)
    
    def _build_failures_section(self, failed: List[Dict[str, Any]]) -> str:
        lines = [self._colorize("FAILURES", "BOLD"), "-" * self.width]
        for component in failed:
            lines.append(self._colorize(component["name"], "YELLOW"))
            for error in component["errors"]:
                lines.append(f"  {error['stage'] or 'unknown'}: {error['message']}")
        return "\n".join(lines)
    
    def _build_skipped_section(self, skipped: List[str]) -> str:
        lines = [self._colorize("SKIPPED", "BOLD"), "-" * self.width]
        lines.extend(skipped)
        return "\n".join(lines)
