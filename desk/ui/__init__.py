"""
Terminal UI for the Flow & Pivot Desk.

Dark-themed dashboard showing:
- Flow Analyzer: pending flow, verdict, history with notes, journal
- Pivot Calculator: formula selection, individual levels, convergence
- World clocks
"""
