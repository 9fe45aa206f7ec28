"""ATS Buddy - concurrent résumé analysis against a job posting."""
