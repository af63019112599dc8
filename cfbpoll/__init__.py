"""College football computer poll: ratings, rankings, and published weekly snapshots."""
