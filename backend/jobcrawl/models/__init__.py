from jobcrawl.models.job import Job

__all__ = ["Job"]
