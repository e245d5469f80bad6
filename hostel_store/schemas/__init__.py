"""
Request/response schemas. JSON keys are camelCase, Python attributes snake_case.
"""
