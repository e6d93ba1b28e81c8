"""
Task subsystem.

Components:
- task_models.py: data structures (TaskOptions, ScheduledTaskInfo) and wire encoding
- validator.py: option checks run before any side effect
- registry.py: in-memory table of task handlers
- task_store.py: SQLite-backed store of ScheduledTaskInfo records
- channel.py: scheduling port over a SchedulingChannel
- router.py: inbound executeTask handling and counter bookkeeping
- events.py: execution event bus
- coordinator.py: TaskCoordinator, the lifecycle state machine
- local_scheduler.py: in-process scheduler speaking the channel contract
"""
