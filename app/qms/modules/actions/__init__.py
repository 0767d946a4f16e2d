"""
Corrective / improvement actions and their approval lifecycle.

planned -> in_progress -> completed_pending_evaluation -> evaluated
planned | in_progress -> cancelled

An action reaches `evaluated` only through its efficiency evaluation; an evaluated
action linked to a risk is what unlocks residual-risk re-evaluation.
"""
