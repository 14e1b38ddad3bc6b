"""
PDF Dictionary Keys and Name Constants
"""

# Resource Dictionary Keys
KEY_XOBJECT = "/XObject"

# Object Types and Subtypes
KEY_SUBTYPE = "/Subtype"
VAL_IMAGE = "/Image"
VAL_WIDGET = "/Widget"

# Annotation Keys (PDF spec 12.5)
KEY_ANNOTS = "/Annots"
KEY_RECT = "/Rect"
KEY_CONTENTS = "/Contents"
KEY_TITLE = "/T"                 # Text label on markup annotations, partial field name on widgets
KEY_ACTION = "/A"
KEY_DEST = "/Dest"

# Action Keys (PDF spec 12.6)
KEY_ACTION_TYPE = "/S"
KEY_URI = "/URI"
KEY_ACTION_DEST = "/D"
VAL_URI_ACTION = "/URI"
VAL_GOTO_ACTION = "/GoTo"

# Interactive Form Field Keys (PDF spec 12.7.3)
KEY_PARENT = "/Parent"
KEY_FIELD_TYPE = "/FT"
KEY_FIELD_VALUE = "/V"
KEY_FIELD_FLAGS = "/Ff"

# Field flag bits (1-based bit positions 1 and 2)
FIELD_FLAG_READ_ONLY = 1 << 0
FIELD_FLAG_REQUIRED = 1 << 1

# Guard against cyclic /Parent chains in malformed forms
MAX_FIELD_DEPTH = 32
