"""
Operator console (Textual) for searching, reconciling and importing questions.
"""
