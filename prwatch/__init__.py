"""prwatch: pull request change detection for pipeline resources."""
