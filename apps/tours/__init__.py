"""Tours app package.

This app holds guided tours, their concrete schedule occurrences and the
capacity manager that keeps the booked slot counter of every schedule in
step with its live tour reservations.
"""
