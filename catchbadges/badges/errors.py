class BadgeEvaluationError(RuntimeError):
    '''A badge pass could not complete; nothing after the failure was written.'''

    def __init__(self, user_id: int, message: str) -> None:
        super().__init__(f'Badge evaluation failed for user {user_id}: {message}')
        self.user_id = user_id
