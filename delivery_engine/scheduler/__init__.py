"""
Scheduler Module — scheduled tweet delivery.
Handles Supabase storage, queue passes, and the post-now path.
"""

from .scheduler_db import SchedulerDB
from .queue_processor import QueueProcessor, PassSummary, run_pass
from .immediate_send import PostResult, post_now, post_now_from_env
from .auto_publisher import start_publisher, stop_publisher
