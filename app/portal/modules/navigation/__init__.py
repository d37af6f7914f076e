"""
Navigation shell: the persistent menu and home grid linking to every satellite app.
"""
