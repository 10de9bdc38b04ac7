"""
On-Demand Courses Backend

Sequential video courses with quiz-gated progression.
"""
