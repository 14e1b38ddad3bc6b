"""
PDF Operator Constants

Content stream operators the element extractors look for.

Reference: PDF 32000-1:2008 specification, Appendix A
"""

# ==============================================================================
# XObject Operators (PDF spec 8.8)
# ==============================================================================
OP_PAINT_XOBJECT = b'Do'         # Paint external object (image or form)

# ==============================================================================
# Text Showing Operators (PDF spec 9.4.3)
# ==============================================================================
OP_SHOW_TEXT = b'Tj'                 # Show text string
OP_SHOW_TEXT_ADJUSTED = b'TJ'        # Show text with individual glyph positioning
OP_NEXT_LINE_SHOW_TEXT = b"'"        # Move to next line and show text
OP_NEXT_LINE_SHOW_TEXT_SPACED = b'"' # Set spacing, move to next line, and show text

TEXT_SHOWING_OPS = {
    OP_SHOW_TEXT, OP_SHOW_TEXT_ADJUSTED, OP_NEXT_LINE_SHOW_TEXT, OP_NEXT_LINE_SHOW_TEXT_SPACED
}
