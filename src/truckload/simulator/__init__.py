"""
simulator -- geometry, collision detection, placement and dynamics.

Modules:
    geometry     -- AABB math
    collision    -- overlap and support queries
    validator    -- constraint checks and error taxonomy
    arrangement  -- immutable snapshot of a loaded vehicle
    load_state   -- placement progress shared with strategies
    planner      -- LoadPlanner / place()
    scenarios    -- force scenario policies
    dynamics     -- DynamicsValidator
    session      -- LoadSession facade
"""
