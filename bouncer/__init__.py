"""End-to-end test harness commands for the state chain and its external chains."""
