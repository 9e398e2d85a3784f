"""RepairClip - diagnostic video processing worker."""
