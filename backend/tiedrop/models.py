from tiedrop import db
from tiedrop.entities import ChatMessage, Profile, ScoreEvent, utcnow


class User(db.Model):
    __tablename__ = 'user'
    # External identity provider key
    id = db.Column(db.String(64), primary_key=True)
    username = db.Column(db.String(64), nullable=False, index=True)
    display_name = db.Column(db.String(128), nullable=True)
    photo_url = db.Column(db.String(512), nullable=True)
    profile_url = db.Column(db.String(512), nullable=True)
    scores = db.relationship('Score', back_populates='user', lazy='dynamic')

    def to_profile(self) -> Profile:
        return Profile(
            id=self.id,
            username=self.username,
            display_name=self.display_name,
            avatar_url=self.photo_url,
            profile_url=self.profile_url,
        )


class Score(db.Model):
    __tablename__ = 'score'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), db.ForeignKey('user.id'), nullable=False, index=True)
    score = db.Column(db.BigInteger, nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)
    user = db.relationship('User', back_populates='scores')

    def to_event(self) -> ScoreEvent:
        return ScoreEvent(id=self.id, identity_id=self.user_id, score=self.score, submitted_at=self.timestamp)


class Message(db.Model):
    __tablename__ = 'message'
    id = db.Column(db.Integer, primary_key=True)
    user = db.Column(db.String(64), nullable=False)
    text = db.Column(db.Text, nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_message(self) -> ChatMessage:
        return ChatMessage(id=self.id, user=self.user, text=self.text, timestamp=self.timestamp)
