#!/usr/bin/env python3
"""
Demo scenario for the SPTS platform.
"""

import os
import sys

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from spts.core.exceptions import SptsException
from spts.main import SptsPlatform


def run_demo():
    """Walk two students through the grade pipeline."""
    print("=" * 60)
    print("SPTS STUDENT PERFORMANCE TRACKING - DEMO")
    print("=" * 60)

    platform = SptsPlatform({'log_level': 'WARNING'})

    try:
        print("\n1. Building a grade tree...")
        enrollment = demonstrate_grade_tree(platform)

        print("\n2. Completing an enrollment from its grade tree...")
        demonstrate_completion(platform, enrollment)

        print("\n3. A failing course puts a student on probation...")
        demonstrate_probation(platform)

        print("\n4. Grading scales...")
        demonstrate_scales(platform)

        print("\n" + "=" * 60)
        print("DEMO COMPLETED SUCCESSFULLY!")
        print("=" * 60)

    except SptsException as e:
        print(f"\nDemo failed with error: {e.error_code}: {e.message}")
        raise


def demonstrate_grade_tree(platform):
    students = platform.student_service
    evaluations = platform.evaluation_service
    grades = platform.grade_entry_service

    alice = students.register_student("S001", "Alice Johnson", "alice@university.edu")
    enrollment = evaluations.enroll(alice.id, 3, "SCALE_10", course_code="CS101")

    coursework = grades.create_entry(enrollment.id, "Coursework", weight=0.4)
    grades.create_entry(enrollment.id, "Quiz 1", weight=0.5, raw_score=9.0, parent_id=coursework.id)
    grades.create_entry(enrollment.id, "Quiz 2", weight=0.5, raw_score=8.0, parent_id=coursework.id)
    grades.create_entry(enrollment.id, "Final exam", weight=0.6, raw_score=9.5)

    print(f"  Coursework composite: {grades.calculate_composite_score(coursework.id):.2f}")
    print(f"  Root weights valid: {grades.validate_weights(enrollment.id)}")
    print(f"  Course score: {grades.calculate_final_grade(enrollment.id):.2f}")
    return enrollment


def demonstrate_completion(platform, enrollment):
    result = platform.evaluation_service.complete_enrollment(enrollment.id)
    print(f"  Score {result.score:.2f} -> {result.letter_grade} (GPA value {result.gpa_value})")
    print(f"  Student GPA {result.student_gpa:.2f}, standing {result.standing.value}")


def demonstrate_probation(platform):
    bob = platform.student_service.register_student("S002", "Bob Smith")
    enrollment = platform.evaluation_service.enroll(bob.id, 4, "SCALE_10", course_code="MA101")
    result = platform.evaluation_service.complete_enrollment(enrollment.id, raw_score=4.5)

    print(f"  Score {result.score:.2f} -> {result.letter_grade} (GPA value {result.gpa_value})")
    print(f"  Standing: {result.standing.value}")
    for alert in platform.alert_service.get_alerts_by_student(bob.id):
        print(f"  Alert [{alert.level.value}] {alert.type.value}: {alert.message}")
    print(f"  Policy: {platform.student_service.standing_policy(bob.id).required_actions}")


def demonstrate_scales(platform):
    scores = [8.0, 7.0, 9.0]
    weights = [0.3, 0.3, 0.4]
    for scale in ("SCALE_10", "SCALE_4", "PASS_FAIL"):
        result = platform.evaluation_service.evaluate_components(scale, scores, weights)
        print(f"  {scale}: {result}")


if __name__ == "__main__":
    run_demo()
