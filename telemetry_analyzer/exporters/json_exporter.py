# telemetry_analyzer/exporters/json_exporter.py - JSON format exporter
"""
Serializes analysis results as JSON strings or files.
"""

import json
from pathlib import Path
from datetime import datetime
from typing import Any, Optional
import logging

from telemetry_analyzer.errors import EncodeError


class JSONExporter:
    """
    Exports analysis results to JSON format.

    Results are either plain dictionaries or result objects exposing
    ``to_dict()``.
    """

    def __init__(self, output_dir: Optional[str] = None, indent: int = 2):
        """
        Initialize the JSON exporter.

        Args:
            output_dir: Directory for exported files (default: current directory)
            indent: JSON indentation
        """
        self.output_dir = Path(output_dir) if output_dir else Path('.')
        self.indent = indent
        self.logger = logging.getLogger(__name__)

    def to_json(self, result: Any) -> str:
        """
        Serialize a result to a JSON string.

        Args:
            result: Result object or dictionary

        Returns:
            JSON string

        Raises:
            EncodeError: If the result cannot be serialized
        """
        data = result.to_dict() if hasattr(result, 'to_dict') else result

        try:
            # NaN/Infinity are not valid JSON
            return json.dumps(data, indent=self.indent, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise EncodeError(f"failed to convert to JSON: {e}") from e

    def export(self, result: Any, filename: Optional[str] = None, prefix: str = 'analysis') -> str:
        """
        Write a result to a JSON file.

        Args:
            result: Result object or dictionary
            filename: Output filename (auto-generated if not provided)
            prefix: Prefix of auto-generated filenames

        Returns:
            Path to output file
        """
        if not filename:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            filename = f'{prefix}_{timestamp}.json'

        self.output_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.output_dir / filename

        content = self.to_json(result)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(content)
            f.write('\n')

        self.logger.info(f"Exported {prefix} to {output_path}")
        return str(output_path)
