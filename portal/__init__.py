"""School portal: users, classes, posts and assignments."""
