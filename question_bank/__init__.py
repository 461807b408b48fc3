"""
Question catalog admin service: WFD / RS / RA practice questions.
"""
