"""
PDF Reading Components

Stateful readers and algorithms that turn a parsed page into raw inputs and
text structure:

- RunCollectorDevice: PDFMiner device collecting one raw run per text operator
- LineGrouper: Baseline-proximity grouping of runs into visual lines
- classify_text: Heading/subheading/list-item/title/symbol/paragraph rules
- read_annotations: pikepdf /Annots reader with form field inheritance
- find_image_ops: pikepdf content stream scan for image paints

These differ from utils/ which contains pure, stateless functions.
"""

from processors.run_collector_device import RunCollectorDevice
from processors.line_grouping import LineGrouper, group_into_lines
from processors.text_classifier import classify_text
from processors.annotation_reader import read_annotation, read_annotations
from processors.image_ops import find_image_ops

__version__ = "1.0.0"
__all__ = [
    'RunCollectorDevice',
    'LineGrouper',
    'group_into_lines',
    'classify_text',
    'read_annotation',
    'read_annotations',
    'find_image_ops',
]
