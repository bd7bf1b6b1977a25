import pytest
from sqlalchemy import update

from projecthub.database import unit_of_work
from projecthub.models.project import Project
from projecthub.models.user import User


def _bump_projects(db, user):
    db.execute(
        update(User)
        .where(User.id == user.id)
        .values(total_projects=User.total_projects + 1)
        .execution_options(synchronize_session=False)
    )


def test_unit_of_work_commits_write_and_counter_together(db, make_user):
    owner = make_user("owner")

    with unit_of_work(db):
        db.add(Project(user_id=owner.id, name="Rover"))
        _bump_projects(db, owner)

    db.expire_all()
    assert db.query(Project).count() == 1
    assert db.get(User, owner.id).total_projects == 1


def test_unit_of_work_rolls_back_write_and_counter_together(db, make_user):
    owner = make_user("owner")

    with pytest.raises(RuntimeError):
        with unit_of_work(db):
            db.add(Project(user_id=owner.id, name="Rover"))
            db.flush()
            _bump_projects(db, owner)
            raise RuntimeError("counter column locked")

    db.expire_all()
    assert db.query(Project).count() == 0
    assert db.get(User, owner.id).total_projects == 0
