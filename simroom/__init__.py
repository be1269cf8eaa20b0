"""SimRoom: AI character simulation chats with keypoint, mood and performance evaluation."""
