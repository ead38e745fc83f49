"""Friend&Help: guided daily check-ins and a supportive companion chat."""
